import pytest

from sctool.core.dependencies import REQUIRED_BINARIES, check_dependencies, resolve_dependencies
from sctool.core.errors import MissingBinariesError

from conftest import make_executable


def test_required_binaries_order():
    assert REQUIRED_BINARIES == ("gcloud", "kubectl", "cfssl", "cfssljson")


def test_all_present(bin_dir):
    for name in REQUIRED_BINARIES:
        make_executable(bin_dir, name)
    assert check_dependencies(REQUIRED_BINARIES, path=str(bin_dir)) is None


def test_reports_every_missing_name_in_order(bin_dir):
    make_executable(bin_dir, "kubectl")
    make_executable(bin_dir, "gcloud")
    with pytest.raises(MissingBinariesError) as ei:
        check_dependencies(["kubectl", "nope1", "gcloud", "nope2"], path=str(bin_dir))
    err = ei.value
    assert err.missing == ["nope1", "nope2"]
    assert str(err) == "nope1,nope2 commands not found in the PATH"
    assert "kubectl" not in str(err)
    assert "gcloud" not in str(err)


def test_non_executable_file_is_missing(bin_dir):
    (bin_dir / "cfssl").write_text("not executable")
    with pytest.raises(MissingBinariesError) as ei:
        check_dependencies(["cfssl"], path=str(bin_dir))
    assert ei.value.missing == ["cfssl"]


def test_uses_process_path_by_default(only_path):
    make_executable(only_path, "gcloud")
    with pytest.raises(MissingBinariesError) as ei:
        check_dependencies()
    assert ei.value.missing == ["kubectl", "cfssl", "cfssljson"]


def test_resolve_dependencies(bin_dir):
    exe = make_executable(bin_dir, "kubectl")
    found = resolve_dependencies(["kubectl", "cfssl"], path=str(bin_dir))
    assert list(found) == ["kubectl", "cfssl"]
    assert found["kubectl"] == str(exe)
    assert found["cfssl"] is None


def test_empty_names_rejected():
    with pytest.raises(ValueError):
        check_dependencies([])


def test_repeated_missing_names_kept_in_input_order(bin_dir):
    make_executable(bin_dir, "kubectl")
    with pytest.raises(MissingBinariesError) as ei:
        check_dependencies(["zz-missing", "kubectl", "zz-missing"], path=str(bin_dir))
    assert ei.value.missing == ["zz-missing", "zz-missing"]
    assert str(ei.value) == "zz-missing,zz-missing commands not found in the PATH"
