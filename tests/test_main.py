import argparse
import pytest
from datetime import date
from unittest.mock import patch
from attendance.form import DateEntry
from main import _parse_entry, build_form, build_parser, create_services, main
from services.api_interface import ApiError
from services.config_loader import load_config
from services.dummy_api import DummyAttendanceApi


def test_parse_entry():
    assert _parse_entry("2024-06-05=09:30,18:15,dentist") == (
        "2024-06-05", "09:30", "18:15", "dentist"
    )
    assert _parse_entry("2024-06-05=09:30,18:15") == ("2024-06-05", "09:30", "18:15", "")


def test_parse_entry_invalid():
    with pytest.raises(argparse.ArgumentTypeError):
        _parse_entry("2024-06-05=09:30")


def test_build_form_broadcast_and_overrides():
    """共通指定を全日付に適用し、--entry で個別に上書きすること"""
    args = build_parser().parse_args([
        "submit",
        "--date", "2024-06-03",
        "--date", "2024-06-04",
        "--clock-in", "09:00",
        "--clock-out", "18:00",
        "--comment", "forgot",
        "--entry", "2024-06-04=10:00,19:00",
    ])

    form = build_form(args)

    assert form.dates == [date(2024, 6, 3), date(2024, 6, 4)]
    assert form.date_entries["2024-06-03"] == DateEntry("09:00", "18:00", "forgot")
    assert form.date_entries["2024-06-04"] == DateEntry("10:00", "19:00", "forgot")


def test_create_services_dummy():
    config = load_config("nonexistent.yaml")
    config["api"]["client"] = "dummy"
    config["employee"]["id"] = "E001"

    api, notifier, dashboard = create_services(config)

    assert isinstance(api, DummyAttendanceApi)
    assert dashboard.employee_id == "E001"


def test_main_requires_employee_id():
    with patch("main.apply_env_overrides", side_effect=lambda c: c), \
            patch("builtins.print"):
        assert main(["--config", "nonexistent.yaml", "available"]) == 2


def test_main_submit_with_dummy_api(tmp_path):
    """ダミーAPIでのsubmitコマンド実行"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("api:\n  client: dummy\nemployee:\n  id: E001\n")

    with patch("main.apply_env_overrides", side_effect=lambda c: c), \
            patch("builtins.print"):
        code = main([
            "--config", str(config_file),
            "submit",
            "--date", "2024-06-03",
            "--clock-in", "09:00",
            "--clock-out", "18:00",
        ])

    assert code == 0


def test_main_submit_invalid_form(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("api:\n  client: dummy\nemployee:\n  id: E001\n")

    with patch("main.apply_env_overrides", side_effect=lambda c: c), \
            patch("builtins.print"):
        code = main([
            "--config", str(config_file),
            "submit",
            "--date", "2024-06-03",
            "--clock-in", "18:00",
            "--clock-out", "09:00",
        ])

    assert code == 1


def test_build_parser_history_and_eligible():
    assert build_parser().parse_args(["history"]).command == "history"
    assert build_parser().parse_args(["eligible"]).command == "eligible"


def test_main_history_with_dummy_api(tmp_path):
    """補正申請履歴の件数を表示すること"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("api:\n  client: dummy\nemployee:\n  id: E001\n")

    with patch("main.apply_env_overrides", side_effect=lambda c: c), \
            patch("builtins.print") as mock_print:
        code = main(["--config", str(config_file), "history"])

    assert code == 0
    mock_print.assert_any_call("補正申請履歴: 0件")


def test_main_eligible_api_failure(tmp_path):
    """APIエラーは終了コード1になること"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("api:\n  client: dummy\nemployee:\n  id: E001\n")

    with patch("main.apply_env_overrides", side_effect=lambda c: c), \
            patch("services.dummy_api.DummyAttendanceApi.list_eligible_dates",
                  side_effect=ApiError("Forbidden", 403)), \
            patch("builtins.print"):
        code = main(["--config", str(config_file), "eligible"])

    assert code == 1


def test_main_available_with_dummy_api(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("api:\n  client: dummy\nemployee:\n  id: E001\n")

    with patch("main.apply_env_overrides", side_effect=lambda c: c), \
            patch("builtins.print") as mock_print:
        code = main(["--config", str(config_file), "available"])

    assert code == 0
    assert mock_print.call_args_list[0].args[0].startswith("補正可能な日付:")
