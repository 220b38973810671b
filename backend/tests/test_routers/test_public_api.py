"""API tests for anonymous listings and appraisals."""

from fastapi.testclient import TestClient

from conftest import headers_for


class TestCivicSpace:
    def test_missing_county(self, client: TestClient) -> None:
        response = client.get("/api/civic-space")

        assert response.status_code == 400
        assert response.json()["detail"] == "County parameter is required"

    def test_invalid_county(self, client: TestClient) -> None:
        response = client.get("/api/civic-space", params={"county": "Atlantis"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid county"

    def test_county_items(
        self, client: TestClient, citizen, make_issue, make_suggestion
    ) -> None:
        make_issue(citizen)
        make_issue(citizen, is_public=False)
        make_issue(citizen, county="Cork")
        make_suggestion(citizen)

        response = client.get("/api/civic-space", params={"county": "Dublin"})

        body = response.json()
        assert body["county"] == "Dublin"
        assert body["issues_count"] == 1
        assert body["suggestions_count"] == 1


class TestAllPublicItems:
    def test_type_filter_keeps_both_counts(
        self, client: TestClient, citizen, make_issue, make_suggestion
    ) -> None:
        make_issue(citizen)
        make_suggestion(citizen)

        response = client.get("/api/all-public-items", params={"type": "issues"})

        body = response.json()
        assert len(body["issues"]) == 1
        assert body["suggestions"] == []
        assert body["issues_count"] == 1
        assert body["suggestions_count"] == 1
        assert body["total_count"] == 2

    def test_invalid_type(self, client: TestClient) -> None:
        response = client.get("/api/all-public-items", params={"type": "comments"})
        assert response.status_code == 400

    def test_invalid_sort(self, client: TestClient) -> None:
        response = client.get("/api/all-public-items", params={"sort": "random"})

        assert response.status_code == 400
        assert response.json()["detail"].startswith("Invalid sort")

    def test_most_liked_first(
        self, client: TestClient, citizen, other_citizen, make_issue
    ) -> None:
        make_issue(citizen, title="Quiet")
        popular = make_issue(citizen, title="Popular")
        for user in (citizen, other_citizen):
            client.post(
                f"/api/appraisals/{popular.id}/toggle",
                json={"type": "issue"},
                headers=headers_for(user),
            )

        response = client.get("/api/all-public-items", params={"sort": "most_liked"})

        issues = response.json()["issues"]
        assert issues[0]["title"] == "Popular"
        assert issues[0]["appraisal_count"] == 2


class TestCountyStats:
    def test_only_counties_with_items(
        self, client: TestClient, citizen, make_issue, make_suggestion
    ) -> None:
        make_issue(citizen, county="Cork")
        make_suggestion(citizen, county="Cork")
        make_issue(citizen, county="Kerry", is_public=False)

        response = client.get("/api/map/county-stats")

        body = response.json()
        assert body["total_counties"] == 1
        cork = body["counties"][0]
        assert cork["county"] == "Cork"
        assert cork["total_count"] == 2
        assert set(cork["coordinates"]) == {"lat", "lng"}


class TestAppraisals:
    def test_toggle_on_and_off(
        self, client: TestClient, citizen, make_issue, auth_headers
    ) -> None:
        issue = make_issue(citizen)
        url = f"/api/appraisals/{issue.id}/toggle"

        first = client.post(url, json={"type": "issue"}, headers=auth_headers)
        second = client.post(url, json={"type": "issue"}, headers=auth_headers)

        assert first.json() == {"message": "Appraisal added", "liked": True, "count": 1}
        assert second.json() == {
            "message": "Appraisal removed",
            "liked": False,
            "count": 0,
        }

    def test_private_item_rejected(
        self, client: TestClient, citizen, make_issue, auth_headers
    ) -> None:
        issue = make_issue(citizen, is_public=False)

        response = client.post(
            f"/api/appraisals/{issue.id}/toggle",
            json={"type": "issue"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    def test_anonymous_status(self, client: TestClient, citizen, make_suggestion) -> None:
        suggestion = make_suggestion(citizen)

        response = client.get(
            f"/api/appraisals/{suggestion.id}/status", params={"type": "suggestion"}
        )

        assert response.json() == {"count": 0, "liked": False}

    def test_status_hides_private_and_missing_items(
        self, client: TestClient, citizen, make_issue
    ) -> None:
        issue = make_issue(citizen, is_public=False)

        private = client.get(
            f"/api/appraisals/{issue.id}/status", params={"type": "issue"}
        )
        missing = client.get("/api/appraisals/999/status", params={"type": "issue"})

        assert private.status_code == 401
        assert missing.status_code == 404

    def test_batch_counts(
        self, client: TestClient, citizen, make_issue, make_suggestion, auth_headers
    ) -> None:
        issue = make_issue(citizen)
        suggestion = make_suggestion(citizen)
        client.post(
            f"/api/appraisals/{issue.id}/toggle",
            json={"type": "issue"},
            headers=auth_headers,
        )

        response = client.post(
            "/api/appraisals/counts",
            json={
                "items": [
                    {"id": issue.id, "type": "issue"},
                    {"id": suggestion.id, "type": "suggestion"},
                ]
            },
        )

        counts = response.json()["counts"]
        assert counts[f"issue_{issue.id}"]["count"] == 1
        assert counts[f"suggestion_{suggestion.id}"]["count"] == 0
