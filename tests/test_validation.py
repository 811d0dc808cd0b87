# tests/test_validation.py
from mrsim_core.validation import FunctionalityReport, IssueLevel, SafetyEvent, SafetyIssueCode


def test_issue_code_formatting():
    message = SafetyIssueCode.SPEED_LIMIT.format_message(speed=130.0, limit=120.0)
    assert SafetyIssueCode.SPEED_LIMIT.code == "SAFETY_SPEED_001"
    assert "130.00" in message and "120.00" in message


def test_missing_template_key_does_not_raise():
    message = SafetyIssueCode.FORCE_LIMIT.format_message(force=9000.0)
    assert "Missing key" in message


def test_safety_event_from_code():
    event = SafetyEvent.from_code(SafetyIssueCode.EMERGENCY_STOP, IssueLevel.ERROR, step=12, elapsed_s=1.2,
                                  temperature=141.5, limit=140.0)
    assert event.code == "SAFETY_TEMP_001"
    assert event.details == {"temperature": 141.5, "limit": 140.0}
    text = str(event)
    assert text.startswith("[ERROR - SAFETY_TEMP_001]")
    assert "Step: 12" in text
    assert "t=1.2s" in text


def test_functionality_report_defaults():
    report = FunctionalityReport(is_valid=True)
    assert report.issues == ()
    assert report.recommendations == ()
