import copy

import pytest


def _place(city, country, city_same_as=None):
    return {
        "city": {"en": city, "no": city, "se": city},
        "country": {"en": country, "no": country, "se": country},
        "cityNow": {"en": city, "no": city, "se": city, "sameAs": city_same_as or []},
        "countryNow": {"en": country, "no": country, "se": country},
        "locationString": {"en": f"{city}, {country}", "no": f"{city}, {country}", "se": f"{city}, {country}"},
    }


CURIE = {
    "id": "6",
    "knownName": {"en": "Marie Curie", "se": "Marie Curie"},
    "givenName": {"en": "Marie", "se": "Marie"},
    "familyName": {"en": "Curie", "se": "Curie"},
    "gender": "female",
    "birth": {"date": "1867-11-07", "place": _place("Warsaw", "Poland", [
        "https://www.wikidata.org/wiki/Q270",
        "https://en.wikipedia.org/wiki/Warsaw",
    ])},
    "death": {"date": "1934-07-04", "place": _place("Sallanches", "France")},
    "wikipedia": {"slug": "Marie_Curie", "english": "https://en.wikipedia.org/wiki/Marie_Curie"},
    "wikidata": {"id": "Q7186", "url": "https://www.wikidata.org/wiki/Q7186"},
    "sameAs": ["https://www.wikidata.org/wiki/Q7186", "https://en.wikipedia.org/wiki/Marie_Curie"],
    "links": [
        {"rel": "external", "href": "https://www.nobelprize.org/laureate/6", "action": "Get", "types": "text/html"},
    ],
    "nobelPrizes": [
        {
            "awardYear": "1903",
            "category": {"en": "Physics", "no": "Fysikk", "se": "Fysik"},
            "categoryFullName": {"en": "The Nobel Prize in Physics", "se": "Nobelpriset i fysik"},
            "sortOrder": "3",
            "portion": "1/4",
            "prizeStatus": "received",
            "motivation": {"en": "in recognition of the extraordinary services", "se": "såsom ett erkännande"},
            "prizeAmount": 150782,
            "prizeAmountAdjusted": 9364421,
            "affiliations": [],
            "residences": [{"country": {"en": "France", "se": "Frankrike"}}],
            "links": [{"rel": "nobelPrize", "href": "https://api.nobelprize.org/2/nobelPrize/phy/1903",
                       "action": "GET", "types": "application/json"}],
        },
        {
            "awardYear": "1911",
            "category": {"en": "Chemistry", "no": "Kjemi", "se": "Kemi"},
            "categoryFullName": {"en": "The Nobel Prize in Chemistry", "se": "Nobelpriset i kemi"},
            "sortOrder": "1",
            "portion": "1",
            "prizeStatus": "received",
            "motivation": {"en": "in recognition of her services", "se": "såsom ett erkännande"},
            "prizeAmount": 140695,
            "prizeAmountAdjusted": 7927335,
            "affiliations": [
                {
                    "name": {"en": "Sorbonne University", "no": "Sorbonne", "se": "Sorbonne"},
                    "nameNow": {"en": "Sorbonne University"},
                    **_place("Paris", "France", ["https://www.wikidata.org/wiki/Q90"]),
                },
            ],
            "links": [],
        },
    ],
}

ICRC = {
    "id": "482",
    "orgName": {"en": "International Committee of the Red Cross", "no": "Den internasjonale Røde Kors-komité"},
    "nativeName": "Comité international de la Croix Rouge",
    "founded": {"date": "1863-00-00", "place": _place("Geneva", "Switzerland")},
    "links": ["https://www.nobelprize.org/laureate/482"],
    "nobelPrizes": [
        {"awardYear": "1917", "category": {"en": "Peace"}, "portion": "1", "prizeStatus": "received"},
        {"awardYear": "1944", "category": {"en": "Peace"}, "portion": "1", "prizeStatus": "received"},
        {
            "awardYear": "1963", "category": {"en": "Peace"}, "portion": "1/2", "prizeStatus": "received",
            # affiliations occasionally come wrapped in an extra list
            "affiliations": [[{"name": {"en": "League of Red Cross Societies"}, "city": {"en": "Geneva"}}]],
        },
    ],
}

NO_PRIZES = {
    "id": "1000",
    "knownName": {"en": "Pending Laureate"},
    "gender": "male",
}


@pytest.fixture
def laureates():
    return copy.deepcopy([CURIE, ICRC, NO_PRIZES])


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        import requests
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Serves laureate pages from an in-memory list, honouring offset/limit."""

    def __init__(self, records, count=None, pages=None):
        self.records = records
        self.count = len(records) if count is None else count
        self.pages = pages
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "headers": headers, "timeout": timeout})
        if self.pages is not None:
            return FakeResponse(self.pages[len(self.calls) - 1])
        offset, limit = params["offset"], params["limit"]
        page = self.records[offset:offset + limit]
        return FakeResponse({"laureates": page, "meta": {"offset": offset, "limit": limit, "count": self.count}})


@pytest.fixture
def fake_session_cls():
    return FakeSession


@pytest.fixture
def fake_response_cls():
    return FakeResponse
