import json
from askedith.services.catalog import ResourceRecord
from askedith.services.email_generator import generate_email, generate_emails, generate_subject

HOME_CARE = ResourceRecord(id=2, category="Home Care Companies", name="Comfort Home Care",
                           email="care@example.com")

ANSWERS = {
    "q1": "Ann",
    "q3": "Mom",
    "q4": json.dumps(["Living home alone"]),
    "q5": json.dumps(["Mobility issues", "Memory care"]),
    "q7": "$3,000-5,000",
    "q8": "Within 1 month",
    "q14": json.dumps({"lastname": "Lee", "email": "ann@example.com", "zipcode": "20814", "phone": "1"}),
}

def test_subject_names_category_and_relationship():
    assert generate_subject(HOME_CARE, ANSWERS) == "Seeking Home Care Companies help for my mom"

def test_body_carries_the_snapshot():
    email = generate_email(HOME_CARE, ANSWERS)
    assert email.to == "care@example.com"
    assert email.body.startswith("Hi Comfort Home Care,\n")
    assert "• Living situation: Living home alone" in email.body
    assert "• Primary concern: Mobility issues, Memory care" in email.body
    assert "• Budget thoughts: $3,000-5,000" in email.body
    assert "• Timeline: Within 1 month" in email.body
    assert email.body.endswith("Thank you!\nAnn Lee")

def test_missing_answers_render_not_specified():
    email = generate_email(HOME_CARE, {})
    assert email.subject == "Seeking Home Care Companies help for my Not specified"
    assert "• Budget thoughts: Not specified" in email.body
    assert email.body.endswith("Thank you!\nNot specified")

def test_rendering_is_pure():
    before = dict(ANSWERS)
    assert generate_email(HOME_CARE, ANSWERS) == generate_email(HOME_CARE, ANSWERS)
    assert ANSWERS == before

def test_one_email_per_resource_in_order():
    va = ResourceRecord(id=1, category="Veteran Benefits", name="VA", email="va@example.gov")
    emails = generate_emails([va, HOME_CARE], ANSWERS)
    assert [e.to for e in emails] == ["va@example.gov", "care@example.com"]
    assert generate_emails([], ANSWERS) == []
