from nobel_tables.data.nobel_flatten import explode, explode_links, flatten_record, link_kind


def test_flatten_joins_nested_paths_and_keeps_lists():
    record = {
        "id": "1",
        "birth": {"date": "1845-03-27", "place": {"cityNow": {"en": "Remscheid", "sameAs": ["u1", "u2"]}}},
        "nobelPrizes": [{"awardYear": "1901"}],
    }
    flat, lists = flatten_record(record)

    assert flat == {"id": "1", "birth_date": "1845-03-27", "birth_place_cityNow": "Remscheid"}
    assert lists == {"birth_place_cityNow_sameAs": ["u1", "u2"], "nobelPrizes": [{"awardYear": "1901"}]}


def test_flatten_selects_language():
    record = {"knownName": {"en": "Marie Curie", "se": "Marie Curie", "no": "Marie Curie"},
              "category": {"en": "Physics", "se": "Fysik", "no": "Fysikk"}}
    flat, _ = flatten_record(record, language="se")
    assert flat == {"knownName": "Marie Curie", "category": "Fysik"}


def test_flatten_keeps_all_translations_without_language():
    flat, _ = flatten_record({"category": {"en": "Physics", "se": "Fysik"}}, language=None)
    assert flat == {"category_en": "Physics", "category_se": "Fysik"}


def test_flatten_custom_separator():
    flat, lists = flatten_record({"birth": {"place": {"city": {"en": "Ulm"}}, "x": [1]}}, sep=".")
    assert flat == {"birth.place.city": "Ulm"}
    assert lists == {"birth.x": [1]}


def test_flatten_missing_translation_yields_no_column():
    flat, _ = flatten_record({"motivation": {"se": "bara svenska"}}, language="en")
    assert flat == {}


def test_explode_tags_children_with_parent_keys():
    parents = [
        ({"laureate_id": "1"}, {"nobelPrizes": [{"awardYear": "1901"}, {"awardYear": "1905"}]}),
        ({"laureate_id": "2"}, {}),
    ]
    rows = [row for row, _ in explode(parents, "nobelPrizes", "prize_index")]
    assert rows == [
        {"laureate_id": "1", "prize_index": 0, "awardYear": "1901"},
        {"laureate_id": "1", "prize_index": 1, "awardYear": "1905"},
    ]


def test_explode_unwraps_nested_lists_and_skips_scalars():
    parents = [({"k": 1}, {"affiliations": [[{"name": {"en": "A"}}], "junk", {"name": {"en": "B"}}]})]
    rows = [row for row, _ in explode(parents, "affiliations", "affiliation_index")]
    assert rows == [
        {"k": 1, "affiliation_index": 0, "name": "A"},
        {"k": 1, "affiliation_index": 1, "name": "B"},
    ]


def test_explode_parent_keys_win_over_child_columns():
    parents = [({"category": "Physics"}, {"items": [{"category": "other", "v": 1}]})]
    (row, _), = explode(parents, "items", "i")
    assert row == {"category": "Physics", "i": 0, "v": 1}


def test_explode_returns_child_lists():
    parents = [({"k": 1}, {"affiliations": [{"cityNow": {"en": "Paris", "sameAs": ["u"]}}]})]
    (_, lists), = explode(parents, "affiliations", "affiliation_index")
    assert lists == {"cityNow_sameAs": ["u"]}


def test_link_kind():
    assert link_kind("https://www.wikidata.org/wiki/Q7186") == "wikidata"
    assert link_kind("https://en.wikipedia.org/wiki/Marie_Curie") == "wikipedia"
    assert link_kind("https://www.nobelprize.org/") == "other"


def test_explode_links_positions_skip_non_strings():
    rows = explode_links(["https://www.wikidata.org/wiki/Q1", None, "", "https://sv.wikipedia.org/wiki/X"],
                         {"laureate_id": 1}, "sameAs")
    assert rows == [
        {"laureate_id": 1, "source": "sameAs", "position": 0, "url": "https://www.wikidata.org/wiki/Q1",
         "kind": "wikidata"},
        {"laureate_id": 1, "source": "sameAs", "position": 1, "url": "https://sv.wikipedia.org/wiki/X",
         "kind": "wikipedia"},
    ]


def test_link_kind_matches_whole_domains_only():
    assert link_kind("https://wikidata.org/wiki/Q1") == "wikidata"
    assert link_kind("https://notwikidata.org/wiki/Q1") == "other"
    assert link_kind("https://fakewikipedia.org/wiki/X") == "other"
    assert link_kind("https://de.wikipedia.org:443/wiki/X") == "wikipedia"
    assert link_kind("not a url") == "other"
