import asyncpg
import pytest

from core.cascade import first_successful
from core.errors import ConfigurationError, QueryFailed


class _Recorder:
    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.executed = []

    async def __call__(self, sql):
        self.executed.append(sql)
        outcome = self.outcomes[sql]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.mark.asyncio
async def test_returns_first_success_and_skips_the_rest():
    run = _Recorder(
        {
            "Q1": asyncpg.exceptions.UndefinedColumnError("column does not exist"),
            "Q2": ["q2 rows"],
            "Q3": ["q3 rows"],
        }
    )

    result = await first_successful(["Q1", "Q2", "Q3"], run, label="test")

    assert result == ["q2 rows"]
    assert run.executed == ["Q1", "Q2"]


@pytest.mark.asyncio
async def test_all_candidates_failing_raises_query_failed():
    last = asyncpg.exceptions.UndefinedTableError("relation does not exist")
    run = _Recorder({"Q1": asyncpg.exceptions.UndefinedColumnError("nope"), "Q2": last})

    with pytest.raises(QueryFailed) as excinfo:
        await first_successful(["Q1", "Q2"], run, label="banners")

    assert excinfo.value.message == "failed to fetch banners"
    assert excinfo.value.__cause__ is last
    assert run.executed == ["Q1", "Q2"]


@pytest.mark.asyncio
async def test_custom_failure_message():
    run = _Recorder({"Q1": asyncpg.exceptions.UndefinedTableError("missing")})

    with pytest.raises(QueryFailed) as excinfo:
        await first_successful(["Q1"], run, label="x", failure_message="failed to fetch data")

    assert excinfo.value.message == "failed to fetch data"


@pytest.mark.asyncio
async def test_empty_candidate_list_is_a_configuration_error():
    run = _Recorder({})

    with pytest.raises(ConfigurationError):
        await first_successful([], run, label="nothing")
    assert run.executed == []


@pytest.mark.asyncio
async def test_non_database_errors_are_not_swallowed():
    run = _Recorder({"Q1": RuntimeError("bug"), "Q2": ["rows"]})

    with pytest.raises(RuntimeError):
        await first_successful(["Q1", "Q2"], run, label="test")
    assert run.executed == ["Q1"]
