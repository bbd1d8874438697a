from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from rowloader.config.loading import LoadingConfig
from rowloader.domain.errors import (
    BackendUnavailableError,
    ConfigurationError,
    MappingError,
    MissingMandatoryColumnError,
    PipelineFatalError,
)
from rowloader.domain.loader import Loader
from rowloader.domain.options import ImportOptions
from tests.helpers.fakes import Book, Genre, InMemoryUnitOfWork, Publisher

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rowloader.domain.catalog import OperatorCatalog


def make_loader(
    catalog: OperatorCatalog,
    uow: InMemoryUnitOfWork,
    *,
    config: LoadingConfig | None = None,
) -> Loader:
    return Loader(Book, uow, catalog=catalog, config=config)


def test_rows_are_bound_with_coercion(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(
        ["Title", "Pages", "Price", "Published On", "In Print"],
        [["Dune", "412", "9.99", "1965-08-01", "yes"]],
    )

    assert report.processed == 1
    assert report.succeeded == 1
    (book,) = report.loaded_objects
    assert isinstance(book, Book)
    assert book.title == "Dune"
    assert book.pages == 412
    assert book.price == Decimal("9.99")
    assert book.published_on == date(1965, 8, 1)
    assert book.in_print is True
    assert in_memory_unit_of_work.committed
    assert report.committed


def test_failed_row_is_isolated_and_processing_continues(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(
        ["Title", "Pages"],
        [["Dune", "412"], ["Emma", "many"], ["", "10"], ["Ulysses", "730"]],
    )

    assert report.processed == 4
    assert report.succeeded == 2
    assert report.failed == 2
    bind_failure, save_failure = report.failures
    assert bind_failure.row_index == 1
    assert bind_failure.row == ("Emma", "many")
    assert "Pages => pages" in bind_failure.error
    assert bind_failure.retryable
    assert save_failure.row_index == 2
    assert save_failure.messages == ("title can't be blank",)
    assert not save_failure.retryable
    assert [book.title for book in in_memory_unit_of_work.store.records_of(Book)] == [
        "Dune",
        "Ulysses",
    ]
    assert in_memory_unit_of_work.store.rolled_back_savepoints == 2


def test_each_row_gets_a_fresh_instance(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(["Title", "Pages"], [["Emma", "many"], ["Dune", ""]])

    (book,) = report.loaded_objects
    assert book.title == "Dune"
    assert book.pages is None


def test_short_rows_treat_missing_cells_as_blank(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(["Title", "Pages", "Price"], [["Dune"]])

    (book,) = report.loaded_objects
    assert (book.title, book.pages, book.price) == ("Dune", None, None)


def test_dummy_run_reports_but_rolls_back(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(
        ["Title"],
        [["Dune"], [""]],
        ImportOptions(dummy_run=True),
    )

    assert (report.processed, report.succeeded, report.failed) == (2, 1, 1)
    assert report.dry_run
    assert not report.committed
    assert in_memory_unit_of_work.rolled_back
    assert not in_memory_unit_of_work.committed


def test_belongs_to_finds_or_creates_by_natural_key(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(
        ["Title", "Publisher"],
        [["Dune", "Chilton"], ["Children of Dune", "Chilton"]],
    )

    first, second = report.loaded_objects
    assert isinstance(first.publisher, Publisher)
    assert first.publisher.name == "Chilton"
    assert second.publisher is first.publisher
    assert len(in_memory_unit_of_work.store.created) == 1


def test_has_many_splits_cell_on_delimiter(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(["Title", "Genres"], [["Dune", "Sci-Fi | Adventure|"]])

    (book,) = report.loaded_objects
    assert [genre.name for genre in book.genres] == ["Sci-Fi", "Adventure"]


def test_has_many_uses_configured_delimiter(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(
        book_catalog,
        in_memory_unit_of_work,
        config=LoadingConfig(multi_value_delimiter=";"),
    )

    report = loader.load(["Title", "Genres"], [["Dune", "Sci-Fi;Adventure"]])

    (book,) = report.loaded_objects
    assert len(book.genres) == 2


def test_find_by_header_looks_up_existing_record(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    existing = in_memory_unit_of_work.store.create(Publisher, name="Chilton", code="CHI")
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(["Title", "Publisher:code"], [["Dune", "CHI"], ["Emma", "XXX"]])

    (book,) = report.loaded_objects
    assert book.publisher is existing
    (failure,) = report.failures
    assert failure.row_index == 1
    assert "No Publisher found with code='XXX'" in failure.error


def test_find_by_fixed_value_applies_to_every_row(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    fantasy = in_memory_unit_of_work.store.create(Genre, name="Fantasy")
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    report = loader.load(["Title", "Genres:name=Fantasy"], [["Dune", ""], ["Emma"]])

    assert report.succeeded == 2
    assert all(book.genres == [fantasy] for book in report.loaded_objects)


def test_defaults_fill_columns_the_row_does_not_supply(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)
    options = ImportOptions(defaults={"Pages": "100", "publisher": "House Press"})

    report = loader.load(["Title", "Pages"], [["Dune", "412"], ["Emma", ""]], options)

    dune, emma = report.loaded_objects
    assert dune.pages == 412
    assert emma.pages == 100
    assert dune.publisher is not None
    assert dune.publisher.name == "House Press"


def test_unknown_default_is_a_configuration_error(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    with pytest.raises(ConfigurationError, match="unknown operator 'isbn'"):
        loader.load(["Title"], [["Dune"]], ImportOptions(defaults={"isbn": "1"}))


def rows_that_must_not_be_read() -> Iterator[list[str]]:
    raise AssertionError("rows were read before resolution finished")
    yield ["never"]


def test_mandatory_column_missing_aborts_before_reading_rows(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    with pytest.raises(MissingMandatoryColumnError):
        loader.load(["Pages"], rows_that_must_not_be_read(), ImportOptions(mandatory={"title"}))

    assert in_memory_unit_of_work.entered == 0


def test_strict_mapping_error_aborts_before_reading_rows(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    with pytest.raises(MappingError):
        loader.load(["Title", "ISBN"], rows_that_must_not_be_read(), ImportOptions(strict=True))

    assert in_memory_unit_of_work.entered == 0


def test_backend_failure_aborts_with_report_attached(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
) -> None:
    in_memory_unit_of_work.store.fail_on_save = BackendUnavailableError("database went away")
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    with pytest.raises(BackendUnavailableError) as excinfo:
        loader.load(["Title"], [["Dune"], ["Emma"]])

    report = excinfo.value.report
    assert report is not None
    assert report.processed == 1
    assert not report.committed
    assert in_memory_unit_of_work.rolled_back
    assert not in_memory_unit_of_work.committed


def test_unexpected_commit_error_is_wrapped_as_fatal(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def failing_commit() -> None:
        raise RuntimeError("disk full")

    monkeypatch.setattr(in_memory_unit_of_work, "commit", failing_commit)
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    with pytest.raises(PipelineFatalError, match="disk full") as excinfo:
        loader.load(["Title"], [["Dune"]])

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert excinfo.value.report is not None
    assert excinfo.value.report.succeeded == 1


def test_verbose_echoes_failures_to_stderr(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
    capsys: pytest.CaptureFixture[str],
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    loader.load(["Title"], [[""]], ImportOptions(verbose=True))

    err = capsys.readouterr().err
    assert "Failed to process row [0]" in err
    assert "title can't be blank" in err


def test_failures_are_logged_with_row_content(
    book_catalog: OperatorCatalog,
    in_memory_unit_of_work: InMemoryUnitOfWork,
    caplog: pytest.LogCaptureFixture,
) -> None:
    loader = make_loader(book_catalog, in_memory_unit_of_work)

    with caplog.at_level(logging.ERROR, logger="rowloader.domain.loader"):
        loader.load(["Title", "Pages"], [["Emma", "many"]])

    assert "Failed to process row [0] ('Emma', 'many')" in caplog.text
