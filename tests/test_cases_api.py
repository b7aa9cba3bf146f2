"""Tests for the public case study endpoints."""

from datetime import UTC, datetime

from httpx import AsyncClient
from sqlalchemy.dialects import postgresql

from tests.factories import make_case, make_result


def compiled(call):
    return call.args[0].compile(dialect=postgresql.dialect())


class TestListCases:
    """Tests for GET /api/cases."""

    async def test_lists_published_cases(self, api_client: AsyncClient, mock_db):
        first = make_case(slug="ground-station")
        second = make_case(slug="launch-pad", industry="energy")
        mock_db.execute.side_effect = [
            make_result(scalar=2),
            make_result(scalars=[first, second]),
        ]

        response = await api_client.get("/api/cases")

        assert response.status_code == 200
        page = response.json()["data"]
        assert page["total"] == 2
        assert page["page_size"] == 12
        assert [item["slug"] for item in page["items"]] == ["ground-station", "launch-pad"]
        assert "content" not in page["items"][0]

        sql = str(compiled(mock_db.execute.await_args_list[1]))
        assert "ORDER BY cases.published_at DESC" in sql

    async def test_future_cases_are_excluded(self, api_client: AsyncClient, mock_db):
        """Scheduled cases stay hidden until their publication time."""
        mock_db.execute.side_effect = [make_result(scalar=0), make_result(scalars=[])]
        before = datetime.now(UTC)

        await api_client.get("/api/cases")

        for call in mock_db.execute.await_args_list:
            statement = compiled(call)
            assert "cases.published_at IS NOT NULL" in str(statement)
            assert "cases.published_at <=" in str(statement)
            cutoffs = [v for v in statement.params.values() if isinstance(v, datetime)]
            assert len(cutoffs) == 1
            assert before <= cutoffs[0] <= datetime.now(UTC)

    async def test_industry_filter(self, api_client: AsyncClient, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=0), make_result(scalars=[])]

        response = await api_client.get("/api/cases", params={"industry": "energy"})

        assert response.status_code == 200
        assert "cases.industry =" in str(compiled(mock_db.execute.await_args_list[0]))

    async def test_industry_all_is_unfiltered(self, api_client: AsyncClient, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=0), make_result(scalars=[])]

        await api_client.get("/api/cases", params={"industry": "all"})

        assert "cases.industry" not in str(compiled(mock_db.execute.await_args_list[0]))


class TestGetCase:
    """Tests for GET /api/cases/{slug}."""

    async def test_returns_case_with_related(self, api_client: AsyncClient, mock_db):
        case = make_case(slug="ground-station", content="<p>Six weeks</p>")
        related = make_case(slug="tracking-dish")
        mock_db.execute.side_effect = [
            make_result(scalar=case),
            make_result(scalars=[related]),
        ]

        response = await api_client.get("/api/cases/ground-station")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["slug"] == "ground-station"
        assert data["content"] == "<p>Six weeks</p>"
        assert data["client"] == "Orbital Ltd"
        assert [r["slug"] for r in data["related_cases"]] == ["tracking-dish"]
        related_sql = str(compiled(mock_db.execute.await_args_list[1]))
        assert "cases.case_id !=" in related_sql
        assert "cases.industry =" in related_sql

    async def test_unpublished_slug_is_not_found(self, api_client: AsyncClient, mock_db):
        mock_db.execute.return_value = make_result(scalar=None)

        response = await api_client.get("/api/cases/next-year")

        assert response.status_code == 404
        assert response.json()["message"] == "Case not found: next-year"
        sql = str(compiled(mock_db.execute.await_args_list[0]))
        assert "cases.published_at <=" in sql
