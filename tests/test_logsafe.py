from __future__ import annotations

from pymonaco._logsafe import preview_for_log


def test_preview_for_log_truncates_long_strings() -> None:
    preview = preview_for_log({"value": "x" * 600}, max_string=10)

    assert preview["value"].startswith("x" * 10)
    assert "<truncated>" in preview["value"]


def test_preview_for_log_caps_collections() -> None:
    preview = preview_for_log({"Lines": list(range(30))}, max_items=5)

    assert preview["Lines"][:5] == [0, 1, 2, 3, 4]
    assert preview["Lines"][-1] == "<25 more>"


def test_preview_for_log_caps_mapping_entries() -> None:
    preview = preview_for_log({str(i): i for i in range(8)}, max_items=3)

    assert list(preview)[:3] == ["0", "1", "2"]
    assert preview["…"] == "<5 more>"


def test_preview_for_log_decodes_bytes() -> None:
    assert preview_for_log(b'{"Heartbeat": {}}') == '{"Heartbeat": {}}'


def test_preview_for_log_keeps_scalars() -> None:
    assert preview_for_log(None) is None
    assert preview_for_log(3) == 3
    assert preview_for_log(True) is True
