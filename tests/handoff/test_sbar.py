from src.handoff.domain.models.patient_record import PatientRecord, TodoItem, new_systems_review
from src.handoff.domain.models.systems_review import SYSTEMS_REVIEW, get_system
from src.handoff.services.reports.sbar import build_sbar_report


def _record(**overrides):
    fields = dict(
        id="p1",
        room_number="305A",
        name="J. Doe",
        age=67,
        diagnosis="CHF exacerbation",
        systems_review=new_systems_review(),
    )
    fields.update(overrides)
    return PatientRecord(**fields)


def test_empty_allergies_and_todos_render_literal_tokens():
    report = build_sbar_report(_record())

    assert report.situation == ""
    assert report.background == "67 y/o admitted for CHF exacerbation. Allergies: None."
    assert report.recommendation == "None outstanding."


def test_allergies_are_comma_joined():
    report = build_sbar_report(_record(allergies=["Penicillin", "Latex"]))
    assert report.background.endswith("Allergies: Penicillin, Latex.")


def test_recommendation_lists_only_outstanding_tasks():
    todos = [
        TodoItem(task="Recheck K+ at 1400"),
        TodoItem(task="Call PT", completed=True),
        TodoItem(task="Wean O2 as tolerated"),
    ]
    report = build_sbar_report(_record(todos=todos))
    assert report.recommendation == "Recheck K+ at 1400; Wean O2 as tolerated"


def test_assessment_uses_notes_or_default_not_deviation_summary():
    review = new_systems_review()
    review["resp"].notes = "Crackles bilateral bases"
    # A deviation without notes still shows the default narrative here.
    review["cardio"].checks["edema"] = False
    report = build_sbar_report(_record(systems_review=review))

    assert len(report.assessment) == len(SYSTEMS_REVIEW)
    assert "Respiratory: Crackles bilateral bases" in report.assessment
    assert f"Cardiovascular: {get_system('cardio').default}" in report.assessment


def test_assessment_defaults_for_systems_missing_from_record():
    report = build_sbar_report(_record(systems_review={}))
    assert report.assessment[0] == f"Neuro: {get_system('neuro').default}"


def test_text_contains_all_four_sections_in_order():
    record = _record(quick_one_liner="67M CHF, diuresing, net -1.2L")
    report = build_sbar_report(record)
    text = report.text

    assert text.startswith("SBAR Handoff: J. Doe (Room 305A)")
    positions = [text.index(label) for label in ("SITUATION:", "BACKGROUND:", "ASSESSMENT:", "RECOMMENDATION:")]
    assert positions == sorted(positions)
    assert "67M CHF, diuresing, net -1.2L" in text


def test_report_does_not_mutate_record():
    record = _record(todos=[TodoItem(task="Draw labs")])
    before = record.model_dump()
    build_sbar_report(record)
    assert record.model_dump() == before
