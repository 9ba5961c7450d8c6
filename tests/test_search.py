def test_blank_query_is_rejected(client):
    response = client.get("/api/search", params={"q": "   "})

    assert response.status_code == 400
    assert response.json()["error"] == "Search query is required"


def test_search_all_sections(client, make_category, make_tag, make_sref):
    neon = make_category("Neon Art", description="Glowing signs")
    make_category("Pastel")
    make_tag("neon")
    make_tag("soft")
    make_sref("100", title="Neon Nights", category=neon)
    make_sref("101", title="Quiet Morning", category=neon)

    body = client.get("/api/search", params={"q": "neon"}).json()

    assert body["query"] == "neon"
    assert body["type"] == "all"
    results = body["results"]
    assert [s["code"] for s in results["srefs"]["data"]] == ["100"]
    assert [c["name"] for c in results["categories"]["data"]] == ["Neon Art"]
    assert results["categories"]["data"][0]["srefCount"] == 2
    assert [t["name"] for t in results["tags"]["data"]] == ["neon"]
    assert body["totalResults"] == 3


def test_few_results_include_suggestions(client, make_category, make_tag, make_sref):
    anime = make_category("Anime")
    make_tag("dreamy", usage_count=4)
    make_sref("200", title="Castle", category=anime, popularity_score=9.5)

    body = client.get("/api/search", params={"q": "castle"}).json()

    suggestions = body["results"]["suggestions"]
    assert [s["code"] for s in suggestions["popular"]] == ["200"]
    assert suggestions["categories"] == [{"name": "Anime", "slug": "anime", "srefCount": 1}]
    assert [t["name"] for t in suggestions["tags"]] == ["dreamy"]


def test_many_results_skip_suggestions(client, make_sref):
    for i in range(10):
        make_sref(f"30{i}", title=f"Neon {i}")

    body = client.get("/api/search", params={"q": "neon"}).json()

    assert body["totalResults"] == 10
    assert "suggestions" not in body["results"]


def test_type_restricts_sections(client, make_tag, make_sref):
    make_tag("vintage")
    make_sref("400", title="Vintage Film")

    body = client.get("/api/search", params={"q": "vintage", "type": "tags"}).json()

    assert set(body["results"]) == {"tags"}
    assert body["totalResults"] == 1


def test_unknown_type_is_rejected(client):
    response = client.get("/api/search", params={"q": "x", "type": "users"})

    assert response.status_code == 400
