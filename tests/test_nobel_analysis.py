from nobel_tables.analysis.nobel_analysis import top_affiliation_countries_chart
from nobel_tables.data.nobel_tables import build_tables


def _counts(chart):
    return dict(zip(chart.data["country"], chart.data["count"]))


def test_top_affiliation_countries(laureates):
    affiliations = build_tables(laureates)["affiliations"]
    assert _counts(top_affiliation_countries_chart(affiliations)) == {"France": 1, "Unknown": 1}


def test_top_affiliation_countries_with_all_translations(laureates):
    affiliations = build_tables(laureates, language=None)["affiliations"]
    assert "countryNow_en" in affiliations.columns
    assert _counts(top_affiliation_countries_chart(affiliations)) == {"France": 1, "Unknown": 1}


def test_top_affiliation_countries_without_country_columns(laureates):
    affiliations = build_tables(laureates)["affiliations"][["laureate_id", "name"]]
    assert _counts(top_affiliation_countries_chart(affiliations)) == {"Unknown": 2}
