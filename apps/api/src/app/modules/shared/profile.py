"""
Applicant profile columns.

The NCLEX application form and the saved user details carry the same
personal, address and education fields. Both tables mix these in.
"""

from pydantic import ConfigDict, create_model
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

APPLICANT_PROFILE_FIELDS: tuple[str, ...] = (
    # Personal
    "first_name",
    "middle_name",
    "last_name",
    "mobile_number",
    "email",
    "gender",
    "marital_status",
    "single_full_name",
    "date_of_birth",
    "birth_place",
    # Address
    "house_number",
    "street_name",
    "city",
    "province",
    "country",
    "zipcode",
    # Elementary
    "elementary_school",
    "elementary_city",
    "elementary_province",
    "elementary_country",
    "elementary_years_attended",
    "elementary_start_date",
    "elementary_end_date",
    # High school
    "high_school",
    "high_school_city",
    "high_school_province",
    "high_school_country",
    "high_school_years_attended",
    "high_school_start_date",
    "high_school_end_date",
    "high_school_graduated",
    "high_school_diploma_type",
    "high_school_diploma_date",
    # Nursing school
    "nursing_school",
    "nursing_school_city",
    "nursing_school_province",
    "nursing_school_country",
    "nursing_school_years_attended",
    "nursing_school_start_date",
    "nursing_school_end_date",
    "nursing_school_major",
    "nursing_school_diploma_date",
    # Submission
    "signature",
    "payment_type",
)


def normalize_profile(data: dict) -> dict:
    """
    Pick the profile fields out of data, turning blanks into None.

    single_full_name is only kept for applicants whose marital status is
    "single".
    """
    profile = {field: (data.get(field) or None) for field in APPLICANT_PROFILE_FIELDS}
    if profile["marital_status"] != "single":
        profile["single_full_name"] = None
    return profile


class ApplicantProfileMixin:
    """Personal, address and education columns of an applicant."""

    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mobile_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    marital_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    single_full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_of_birth: Mapped[str | None] = mapped_column(String(20), nullable=True)
    birth_place: Mapped[str | None] = mapped_column(String(200), nullable=True)

    house_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    street_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    zipcode: Mapped[str | None] = mapped_column(String(20), nullable=True)

    elementary_school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    elementary_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    elementary_province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    elementary_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    elementary_years_attended: Mapped[str | None] = mapped_column(String(20), nullable=True)
    elementary_start_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    elementary_end_date: Mapped[str | None] = mapped_column(String(20), nullable=True)

    high_school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    high_school_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    high_school_province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    high_school_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    high_school_years_attended: Mapped[str | None] = mapped_column(String(20), nullable=True)
    high_school_start_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    high_school_end_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    high_school_graduated: Mapped[str | None] = mapped_column(String(20), nullable=True)
    high_school_diploma_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    high_school_diploma_date: Mapped[str | None] = mapped_column(String(20), nullable=True)

    nursing_school: Mapped[str | None] = mapped_column(String(200), nullable=True)
    nursing_school_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nursing_school_province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nursing_school_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nursing_school_years_attended: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nursing_school_start_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nursing_school_end_date: Mapped[str | None] = mapped_column(String(20), nullable=True)
    nursing_school_major: Mapped[str | None] = mapped_column(String(200), nullable=True)
    nursing_school_diploma_date: Mapped[str | None] = mapped_column(String(20), nullable=True)

    signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_type: Mapped[str | None] = mapped_column(String(20), nullable=True)


ApplicantProfileSchema = create_model(
    "ApplicantProfileSchema",
    __config__=ConfigDict(from_attributes=True),
    **{field: (str | None, None) for field in APPLICANT_PROFILE_FIELDS},
)
