"""Tests for logging setup and structured errors."""

import json
import logging

from geotag.errors import CatalogError, ErrorCode, GeotagError, NormalizationError
from geotag.logging import CatalogFilter, JSONFormatter, get_logger, set_log_catalog, setup_logging


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="geotag.catalog",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Loaded %d rules",
        args=(3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSON log output."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))
        assert data["level"] == "WARNING"
        assert data["logger"] == "geotag.catalog"
        assert data["message"] == "Loaded 3 rules"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields_included(self):
        """Test that fields passed via extra= appear in the output."""
        data = json.loads(JSONFormatter().format(make_record(path="dlc.dat", catalog="geosite.dat")))
        assert data["path"] == "dlc.dat"
        assert data["catalog"] == "geosite.dat"
        assert "args" not in data


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_default_level(self):
        logger = setup_logging()
        assert logger.name == "geotag"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.WARNING

    def test_verbose(self):
        logger = setup_logging(verbose=True)
        assert logger.level == logging.DEBUG
        assert logger.handlers[0].level == logging.DEBUG

    def test_json_format(self):
        logger = setup_logging(json_format=True)
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "geotag.log"
        logger = setup_logging(log_file=log_file)
        get_logger("test").warning("written to file")
        for handler in logger.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text()
        for handler in logger.handlers[1:]:
            handler.close()
        logger.handlers.clear()

    def test_get_logger_names(self):
        assert get_logger().name == "geotag"
        assert get_logger("catalog").name == "geotag.catalog"


class TestCatalogContext:
    """Tests for tagging records with the run's catalog."""

    def test_filter_tags_record(self):
        log_filter = CatalogFilter()
        log_filter.catalog = "dlc.dat"
        record = make_record()
        assert log_filter.filter(record) is True
        assert record.catalog == "dlc.dat"

    def test_filter_keeps_explicit_catalog(self):
        log_filter = CatalogFilter()
        log_filter.catalog = "dlc.dat"
        record = make_record(catalog="other.json")
        log_filter.filter(record)
        assert record.catalog == "other.json"

    def test_no_catalog_set(self):
        record = make_record()
        CatalogFilter().filter(record)
        assert not hasattr(record, "catalog")

    def test_json_handler_output_carries_catalog(self, capsys):
        """Test that child logger records pick up the catalog on the handler."""
        setup_logging(json_format=True)
        set_log_catalog("rules.json")
        get_logger("catalog").warning("empty catalog")
        data = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert data["catalog"] == "rules.json"
        assert data["logger"] == "geotag.catalog"


class TestErrors:
    """Tests for structured errors."""

    def test_str_includes_code_details_and_cause(self):
        error = CatalogError(
            ErrorCode.CATALOG_NOT_FOUND,
            "catalog not found",
            details={"path": "dlc.dat"},
            cause=FileNotFoundError("nope"),
        )
        assert str(error) == "[catalog_not_found] catalog not found (path=dlc.dat) caused by: nope"

    def test_to_dict(self):
        error = NormalizationError(ErrorCode.HOST_INVALID, "empty")
        assert error.to_dict() == {
            "code": "host_invalid",
            "message": "empty",
            "details": {},
            "cause": None,
        }

    def test_subclasses_share_base(self):
        assert isinstance(CatalogError(ErrorCode.CATALOG_INVALID, "x"), GeotagError)
