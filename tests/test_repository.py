import pytest

from tutor_scheduler.config import Settings
from tutor_scheduler.data.repository import (
    InMemoryTutorRepository,
    SqlTutorRepository,
    build_tutor_repository,
)
from tutor_scheduler.data.roster import load_static_roster
from tutor_scheduler.data.search import skill_matches
from tutor_scheduler.errors import InternalError
from tutor_scheduler.models import TutorMode


@pytest.fixture
def sql_repo(tmp_path):
    repo = SqlTutorRepository.from_url(f"sqlite:///{tmp_path / 'tutors.db'}")
    repo.create_schema()
    repo.seed(load_static_roster())
    return repo


def test_sql_repository_round_trips_roster(sql_repo):
    tutors = sql_repo.list_all_tutors()
    expected = {t.id: t for t in load_static_roster()}

    assert [t.id for t in tutors] == [1, 2, 3, 4]
    for t in tutors:
        want = expected[t.id]
        assert t.name == want.name
        assert t.pronouns == want.pronouns
        assert t.mode == want.mode
        assert set(t.skills) == set(want.skills)
        assert set(t.availability) == set(want.availability)


def test_sql_repository_get_by_id(sql_repo):
    assert sql_repo.get_tutor_by_id(3).name == "Chris H"
    assert sql_repo.get_tutor_by_id(99) is None


def test_sql_repository_keyword_search(sql_repo):
    assert [t.id for t in sql_repo.find_tutors_by_keyword("cpp")] == [4]
    assert [t.id for t in sql_repo.find_tutors_by_keyword("Python", day="Monday")] == [1, 3]
    assert [t.id for t in sql_repo.find_tutors_by_keyword("Java", mode=TutorMode.on_campus)] == [3]


def test_in_memory_keyword_search_matches_bio_and_skills(repository):
    assert [t.id for t in repository.find_tutors_by_keyword("linux")] == [2]
    assert [t.id for t in repository.find_tutors_by_keyword("machine learning")] == [2]
    assert repository.find_tutors_by_keyword("Haskell") == []


def test_cpp_spellings_match_only_cpp(repository):
    claire = repository.get_tutor_by_id(4)
    aung = repository.get_tutor_by_id(1)

    for spelling in ("C++", "cpp", "c plus plus"):
        assert skill_matches(claire, spelling)
    assert not skill_matches(aung, "cpp")


def test_build_tutor_repository(tmp_path):
    assert isinstance(build_tutor_repository(Settings(tutor_database_url="")), InMemoryTutorRepository)

    url = f"sqlite:///{tmp_path / 'roster.db'}"
    assert isinstance(build_tutor_repository(Settings(tutor_database_url=url)), SqlTutorRepository)


def test_seeding_twice_adds_nothing(sql_repo):
    assert sql_repo.seed(load_static_roster()) == 0

    tutors = sql_repo.list_all_tutors()
    assert [t.id for t in tutors] == [1, 2, 3, 4]
    assert all(len(t.availability) == 3 for t in tutors)


def test_missing_tables_raise_internal_error(tmp_path):
    repo = SqlTutorRepository.from_url(f"sqlite:///{tmp_path / 'empty.db'}")

    with pytest.raises(InternalError):
        repo.list_all_tutors()
    with pytest.raises(InternalError):
        repo.get_tutor_by_id(1)
