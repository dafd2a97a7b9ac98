from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

SELECT_ALL = "Select All"

class InputKind(str, Enum):
    SHORT_TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    SINGLE_SELECT = "select"
    MULTI_SELECT = "multiselect"
    FREE_TEXT = "textarea"
    CONTACT = "contact_info"

class SubField(BaseModel):
    model_config = ConfigDict(frozen=True)
    name: str
    kind: str = "text"  # text|email|number|tel
    placeholder: str = ""
    required: bool = True

class QuestionSpec(BaseModel):
    model_config = ConfigDict(frozen=True)
    id: int
    text: str
    kind: InputKind
    required: bool = True
    options: List[str] = Field(default_factory=list)
    subfields: List[SubField] = Field(default_factory=list)
    placeholder: Optional[str] = None
    category: Optional[str] = None
    subtext: Optional[str] = None

    @property
    def key(self) -> str:
        return f"q{self.id}"

    @property
    def has_select_all(self) -> bool:
        return self.kind == InputKind.MULTI_SELECT and SELECT_ALL in self.options

    @property
    def auto_advances(self) -> bool:
        # choice-style steps move on as soon as a selection is made
        return self.kind in (InputKind.SINGLE_SELECT, InputKind.MULTI_SELECT, InputKind.CONTACT)

    @model_validator(mode="after")
    def _check_shape(self):
        if self.kind in (InputKind.SINGLE_SELECT, InputKind.MULTI_SELECT) and not self.options:
            raise ValueError(f"question {self.id} needs options")
        if self.kind == InputKind.CONTACT and not self.subfields:
            raise ValueError(f"question {self.id} needs subfields")
        return self

CONTACT_FIELDS = [
    SubField(name="lastname", kind="text", placeholder="Your last name"),
    SubField(name="email", kind="email", placeholder="Your email address"),
    SubField(name="zipcode", kind="text", placeholder="Your ZIP code"),
    SubField(name="phone", kind="tel", placeholder="Your phone number"),
]

QUESTIONS: List[QuestionSpec] = [
    QuestionSpec(id=1, text="What is your first name?", kind=InputKind.SHORT_TEXT,
                 placeholder="Your first name", category="demographic"),
    QuestionSpec(id=2, text="Age of first person who may need some kind of care?", kind=InputKind.NUMBER,
                 placeholder="Enter age of first person", category="recipient_info"),
    QuestionSpec(id=3, text="Relationship to care recipient", kind=InputKind.SINGLE_SELECT,
                 options=["Mom", "Dad", "Husband", "Wife", "Brother", "Sister", "Friend", "Other"],
                 category="relationship"),
    QuestionSpec(id=4, text="Living situation (Select all that apply)", kind=InputKind.MULTI_SELECT,
                 options=["Living home alone", "Living with family", "In Rehab with a planned discharge soon",
                          "In a senior living community", "In a skilled nursing facility"],
                 category="housing"),
    QuestionSpec(id=5, text="Current life challenges (Check all that apply)", kind=InputKind.MULTI_SELECT,
                 options=["No challenges. Simply seeking independent lifestyle options", "Mobility issues",
                          "Memory care", "Financial resources and how to pay for care",
                          "Assistance with Activities of Daily Living", "Medication Management",
                          "No longer drives. Needs Transportation", "Is socially isolated",
                          "Meal preparation or grocery shopping assistance", "Home modifications",
                          "Legal matters (Power of Attorney, Wills, etc.)"],
                 category="needs"),
    QuestionSpec(id=6, text="Level of daily assistance and oversight you think is needed",
                 kind=InputKind.SINGLE_SELECT, options=["Minimal", "Moderate", "Substantial", "Full-time care"],
                 category="care_level"),
    QuestionSpec(id=7, text="What is the monthly income available for care?", kind=InputKind.SINGLE_SELECT,
                 options=["Under $1,000", "$1,000-2,000", "$2,000-3,000", "$3,000-5,000", "$5,000-7,000",
                          "$7,000-9,000", "$9,000+"],
                 category="financial"),
    QuestionSpec(id=8, text="Desired timeline for solutions", kind=InputKind.SINGLE_SELECT,
                 options=["Immediate", "Within 1 month", "Within 3 months", "Within 6 months",
                          "Flexible because we are just exploring options right now"],
                 category="timeline"),
    QuestionSpec(id=9, text="Health conditions of concern", kind=InputKind.FREE_TEXT, required=False,
                 placeholder="List any major health concerns", category="health"),
    QuestionSpec(id=10, text="Financial situation (Select all that apply)", kind=InputKind.MULTI_SELECT,
                 options=["Own a home", "Rent a home", "Have savings", "Have a pension", "Have a 401k",
                          "Have Social Security", "Have Life Insurance", "Have Long-Term Care Insurance"],
                 category="financial_situation"),
    QuestionSpec(id=11, text="Is the person a veteran or spouse of a veteran?", kind=InputKind.SINGLE_SELECT,
                 options=["Yes", "No"], category="military"),
    QuestionSpec(id=12, text="Family members involved in decisions", kind=InputKind.FREE_TEXT, required=False,
                 placeholder="Describe the family members involved in care decisions",
                 category="family_involvement"),
    QuestionSpec(id=13, text="Additional information professionals should know", kind=InputKind.FREE_TEXT,
                 required=False,
                 placeholder="Share any other relevant details about your situation that you think could be "
                             "helpful to the recipients in these organizations",
                 category="additional_info"),
    QuestionSpec(id=14, text="Your contact information", kind=InputKind.CONTACT, subfields=CONTACT_FIELDS,
                 category="contact_details"),
    QuestionSpec(id=15, text="Select resource types you'd like to connect with", kind=InputKind.MULTI_SELECT,
                 options=[SELECT_ALL, "Veteran Benefits specialists", "Aging Life Care Professionals",
                          "Home Care Companies", "Government Agencies", "Financial Advisors"],
                 category="resource_types"),
]

def check_contiguous(questions: List[QuestionSpec]) -> None:
    ids = [q.id for q in questions]
    if ids != list(range(1, len(questions) + 1)):
        raise ValueError(f"question ids must run 1..{len(questions)} in order, got {ids}")

check_contiguous(QUESTIONS)

def get_question(step: int, questions: List[QuestionSpec] = QUESTIONS) -> QuestionSpec:
    if step < 1 or step > len(questions):
        raise IndexError(f"no question at step {step}")
    return questions[step - 1]

def find_by_category(category: str, questions: List[QuestionSpec] = QUESTIONS) -> Optional[QuestionSpec]:
    return next((q for q in questions if q.category == category), None)
