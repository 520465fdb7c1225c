#!/usr/bin/env python3
"""
Backend Testing Script for css-assets

This script tests the supporting components (logging, error tracking,
reference validation and file helpers) that the asset pipeline relies on.
"""

import logging
import os
import sys
from pathlib import Path

import pytest

# Add the src directory to the path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

# Import our modules
from css_assets.core.cachebuster import (
    CustomCacheBuster,
    MtimeCacheBuster,
    NoCacheBuster,
    build_cachebuster,
)
from css_assets.core.config import AssetsOptions, build_config
from css_assets.core.errors import AssetNotFoundError, ConfigurationError
from css_assets.core.logger import AssetsLogger, create_error_tracker, get_logger, initialize_logging
from css_assets.utils.file_manager import absolute_dir, is_readable_file, mtime_token, posix_relpath
from css_assets.utils.validators import (
    get_validator,
    join_base_url,
    split_reference,
    unquote_css,
    validate_path_list,
)


def test_logging_system(tmp_path):
    """Test the logging system."""
    print("🔍 Testing Logging System...")

    initialize_logging(str(tmp_path / "logs"), level=logging.DEBUG)
    logger = get_logger('test')
    assert logger.name == 'css_assets.test'

    logger.info("Logging system test - INFO level")
    logger.error("Logging system test - ERROR level")
    for handler in logging.getLogger('css_assets').handlers:
        handler.flush()

    assert (tmp_path / "logs" / "css_assets.log").exists()
    assert "ERROR level" in (tmp_path / "logs" / "css_assets_errors.log").read_text(encoding='utf-8')

    # Tear down handlers so later tests start clean
    root = logging.getLogger('css_assets')
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    print("   ✓ Logging system working correctly")


def test_console_only_logger_creates_no_files(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    AssetsLogger()
    assert list(tmp_path.iterdir()) == []


def test_error_tracker():
    """Test the error tracker."""
    print("🔍 Testing Error Tracker...")

    tracker = create_error_tracker('test')
    try:
        raise AssetNotFoundError("missing.png")
    except AssetNotFoundError as e:
        error_id = tracker.log_error(e, value="resolve('missing.png')", source="main.css")
        print(f"   ✓ Error logged with ID: {error_id}")

    warning_id = tracker.log_warning("Dropping unparseable CSS", source="main.css")
    assert error_id.startswith("ERR_")
    assert warning_id.startswith("WARN_")

    summary = tracker.get_error_summary()
    assert summary['total_errors'] == 1
    assert summary['total_warnings'] == 1
    assert summary['error_types'] == {'AssetNotFoundError': 1}
    assert "Asset not found or unreadable" in summary['recent_errors'][0]['message']
    assert "AssetNotFoundError" in summary['recent_errors'][0]['traceback']
    assert summary['recent_errors'][0]['value'] == "resolve('missing.png')"
    assert summary['recent_warnings'][0]['source'] == "main.css"


def test_reference_validation():
    """Test reference classification."""
    print("🔍 Testing Reference Validation...")

    validator = get_validator()
    test_refs = [
        ("http://example.com/a.png", True),
        ("https://example.com/a.png", True),
        ("//cdn.example.com/a.png", True),
        ("data:image/png;base64,AAAA", True),
        ("images/a.png", False),
        ("/images/a.png", False),
        ("C:/images/a.png", False),
        ("", False),
    ]
    for ref, expected in test_refs:
        assert validator.is_absolute_url(ref) == expected, ref


def test_reference_helpers():
    assert split_reference("a.png?x=1&y#frag") == ("a.png", "x=1&y", "frag")
    assert split_reference("a.png#frag?not-query") == ("a.png", None, "frag?not-query")
    assert split_reference("a.png") == ("a.png", None, None)

    assert join_base_url("/content/theme/", "alpha/a.png") == "/content/theme/alpha/a.png"
    assert join_base_url("/content/theme", "alpha/a.png") == "/content/theme/alpha/a.png"
    assert join_base_url("http://example.com", "a.png") == "http://example.com/a.png"
    assert join_base_url("/", "../a.png") == "/a.png"

    assert unquote_css("'a b.png'") == "a b.png"
    assert unquote_css('"a.png"') == "a.png"
    assert unquote_css("a\\ b.png") == "a b.png"
    assert unquote_css("  a.png ") == "a.png"


def test_path_list_validation():
    assert validate_path_list(None, 'loadPaths') == []
    assert validate_path_list('alpha', 'loadPaths') == ['alpha']
    assert validate_path_list(('alpha', 'beta'), 'loadPaths') == ['alpha', 'beta']
    with pytest.raises(ConfigurationError, match='loadPaths'):
        validate_path_list(5, 'loadPaths')


def test_file_helpers(tmp_path):
    """Test the file helpers."""
    print("🔍 Testing File Helpers...")

    target = tmp_path / "a.txt"
    target.write_text("hello", encoding='utf-8')
    assert is_readable_file(str(target))
    assert not is_readable_file(str(tmp_path))
    assert not is_readable_file(str(tmp_path / "missing.txt"))

    os.utime(target, (0, 1))
    assert mtime_token(str(target)) == format(1000, 'x')

    assert absolute_dir("alpha/", str(tmp_path)) == absolute_dir("./alpha", str(tmp_path)) == str(tmp_path / "alpha")
    assert posix_relpath(str(tmp_path / "a" / "b.png"), str(tmp_path / "c")) == "../a/b.png"


def test_cachebuster_policies():
    assert isinstance(build_cachebuster(None), NoCacheBuster)
    assert isinstance(build_cachebuster(False), NoCacheBuster)
    assert isinstance(build_cachebuster(True), MtimeCacheBuster)
    assert isinstance(build_cachebuster(lambda path, pathname: None), CustomCacheBuster)
    for bad in ("yes", 1, ["x"]):
        with pytest.raises(ConfigurationError):
            build_cachebuster(bad)


def test_configuration(tmp_path):
    config = build_config(AssetsOptions.from_mapping(
        {'basePath': str(tmp_path), 'loadPaths': ['alpha/', './beta'], 'baseUrl': '/static/',
         'relativeTo': str(tmp_path / 'out'), 'cache': False}))
    assert config.base_paths == (str(tmp_path),)
    assert config.load_paths == (str(tmp_path / 'alpha'), str(tmp_path / 'beta'))
    assert config.base_url == '/static/'
    assert config.relative_to == str(tmp_path / 'out')
    assert config.cache is False
    assert isinstance(config.cachebuster, NoCacheBuster)

    # Snake case and camelCase keys are interchangeable
    assert AssetsOptions.from_mapping({'base_path': 'x'}) == AssetsOptions.from_mapping({'basePath': 'x'})

    with pytest.raises(ConfigurationError):
        build_config({'baseUrl': 5})


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
