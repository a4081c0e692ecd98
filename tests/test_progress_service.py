import pytest

from conftest import ANON, USER, run
from epubshelf.models import ReadingProgress
from epubshelf.services.progress_service import load_progress, percentage_from_fraction, save_progress


@pytest.mark.unit
class TestSaveLoad:

    def test_round_trip(self, backend):
        assert run(save_progress(USER, backend, "id1", "Dune", "epubcfi(/6/4)", 42)) is True

        progress = run(load_progress(USER, backend, "id1"))

        assert isinstance(progress, ReadingProgress)
        assert progress.last_read_cfi == "epubcfi(/6/4)"
        assert progress.percentage == 42

    def test_last_write_wins(self, backend):
        run(save_progress(USER, backend, "id1", "Dune", "epubcfi(/6/4)", 42))
        run(save_progress(USER, backend, "id1", "Dune", "epubcfi(/6/2)", 12))

        progress = run(load_progress(USER, backend, "id1"))
        assert (progress.last_read_cfi, progress.percentage) == ("epubcfi(/6/2)", 12)
        assert len(backend.rows) == 1

    def test_percentage_is_clamped(self, backend):
        run(save_progress(USER, backend, "id1", "Dune", "epubcfi(/6/4)", 130))
        assert run(load_progress(USER, backend, "id1")).percentage == 100

    def test_save_is_noop_when_anonymous(self, backend):
        assert run(save_progress(ANON, backend, "id1", "Dune", "epubcfi(/6/4)", 42)) is False
        assert backend.rows == {}

    def test_save_swallows_backend_errors(self, backend):
        backend.fail = True
        assert run(save_progress(USER, backend, "id1", "Dune", "epubcfi(/6/4)", 42)) is False

    def test_save_without_backend(self):
        assert run(save_progress(USER, None, "id1", "Dune", "epubcfi(/6/4)", 42)) is False


@pytest.mark.unit
class TestLoadFallback:

    def test_anonymous(self, backend):
        backend.add_row("user-1", "id1", "Dune", "epubcfi(/6/4)", 42)
        assert run(load_progress(ANON, backend, "id1")) is None

    def test_not_found(self, backend):
        assert run(load_progress(USER, backend, "id1")) is None

    def test_backend_error(self, backend):
        backend.add_row("user-1", "id1", "Dune", "epubcfi(/6/4)", 42)
        backend.fail = True
        assert run(load_progress(USER, backend, "id1")) is None

    def test_row_without_locator(self, backend):
        backend.add_row("user-1", "id1", "Dune", None, 0)
        assert run(load_progress(USER, backend, "id1")) is None


@pytest.mark.unit
class TestPercentageFromFraction:

    @pytest.mark.parametrize("fraction,expected", [
        (0.0, 0),
        (0.429, 42),
        (0.999, 99),
        (1.0, 100),
        (1.5, 100),
        (-0.2, 0),
    ])
    def test_floors_and_clamps(self, fraction, expected):
        assert percentage_from_fraction(fraction) == expected

    def test_none(self):
        assert percentage_from_fraction(None) is None
