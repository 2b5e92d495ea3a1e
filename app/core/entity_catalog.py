"""
Entities exposed through /entities/{entity}.

Each entry pairs a table with the shape accepted on create/update. Field
names are the external (camelCase) keys; the stored column is derived with
naming.to_column_key. id/version are engine-managed and never declared here.
"""
import re
from datetime import date

from app.core.combinators import (
    BooleanSchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    StringSchema,
)
from app.core.config import settings
from app.core.registry import EntityDescriptor, EntityRegistry
from app.models.calendar_event import CalendarEvent
from app.models.client import Client
from app.models.contract import Contract
from app.models.contract_project import ContractProject
from app.models.project import Project
from app.models.project_skill import ProjectSkill
from app.models.rate_card import RateCard
from app.models.skill import Skill


_ISO_DAY = re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII)


def is_iso_date(value: str) -> bool:
    if not _ISO_DAY.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def iso_date():
    return StringSchema().trim().refine(is_iso_date, "Must be a date in YYYY-MM-DD format.")


def optional_text():
    return StringSchema().trim().nullable().optional()


def required_name(message: str):
    return StringSchema().trim().min(1, message)


def reference(message: str):
    return StringSchema().trim().min(1, message)


def _ends_after_start(data: dict) -> bool:
    start, end = data.get("startDate"), data.get("endDate")
    if not start or not end:
        return True
    return date.fromisoformat(end) >= date.fromisoformat(start)


CLIENT_SCHEMA = ObjectSchema({
    "name": required_name("Client name is required."),
    "sector": optional_text(),
    "contactEmail": optional_text().refine(
        lambda v: v is None or "@" in v, "Must be a valid email address."
    ),
})

PROJECT_SCHEMA = ObjectSchema({
    "name": required_name("Project name is required."),
    "clientId": optional_text(),
    "startDate": iso_date().nullable().optional(),
    "endDate": iso_date().nullable().optional(),
    "budget": NumberSchema(coerce=True).min(0, "Budget must be >= 0.").nullable().optional(),
    "realizationPercentage": (
        NumberSchema(coerce=True)
        .min(0, "Must be between 0 and 100.")
        .max(100, "Must be between 0 and 100.")
        .nullable()
        .optional()
    ),
    "projectManager": optional_text(),
    "status": optional_text(),
    "notes": optional_text(),
    "contractId": optional_text(),
}).refine(_ends_after_start, "End date must not precede start date.", path=["endDate"])

CONTRACT_SCHEMA = ObjectSchema({
    "name": required_name("Contract name is required."),
    "startDate": iso_date().nullable().optional(),
    "endDate": iso_date().nullable().optional(),
    "cig": StringSchema().trim().min(1, "CIG is required."),
    "cigDerivato": optional_text(),
    "wbs": optional_text(),
    "capienza": NumberSchema(coerce=True).min(0, "Capacity must be >= 0."),
    "billingType": EnumSchema(
        ["TIME_MATERIAL", "FIXED_PRICE"], "Billing type must be TIME_MATERIAL or FIXED_PRICE."
    ).optional(),
}).refine(_ends_after_start, "End date must not precede start date.", path=["endDate"])

CONTRACT_PROJECT_SCHEMA = ObjectSchema({
    "contractId": reference("Contract is required."),
    "projectId": reference("Project is required."),
})

SKILL_SCHEMA = ObjectSchema({
    "name": required_name("Skill name is required."),
    "isCertification": BooleanSchema().optional(),
})

PROJECT_SKILL_SCHEMA = ObjectSchema({
    "projectId": reference("Project is required."),
    "skillId": reference("Skill is required."),
})

RATE_CARD_SCHEMA = ObjectSchema({
    "name": required_name("Rate card name is required."),
    "currency": StringSchema().trim().min(3, "Currency must be an ISO 4217 code.").optional(),
})

CALENDAR_SCHEMA = ObjectSchema({
    "name": required_name("Name is required."),
    "date": iso_date(),
    "type": EnumSchema(["NATIONAL_HOLIDAY", "COMPANY_CLOSURE", "LOCAL_HOLIDAY"]),
    "location": optional_text(),
})


def entity_descriptors() -> list[EntityDescriptor]:
    elevated = frozenset({settings.ELEVATED_ROLE})
    return [
        EntityDescriptor("clients", Client.__table__, CLIENT_SCHEMA),
        EntityDescriptor("projects", Project.__table__, PROJECT_SCHEMA),
        EntityDescriptor("contracts", Contract.__table__, CONTRACT_SCHEMA),
        EntityDescriptor(
            "contract-projects",
            ContractProject.__table__,
            CONTRACT_PROJECT_SCHEMA,
            conflict_keys=("contract_id", "project_id"),
        ),
        EntityDescriptor("skills", Skill.__table__, SKILL_SCHEMA),
        EntityDescriptor(
            "project-skills",
            ProjectSkill.__table__,
            PROJECT_SKILL_SCHEMA,
            conflict_keys=("project_id", "skill_id"),
        ),
        EntityDescriptor("rate-cards", RateCard.__table__, RATE_CARD_SCHEMA, read_roles=elevated),
        EntityDescriptor("calendar", CalendarEvent.__table__, CALENDAR_SCHEMA),
    ]


def build_registry() -> EntityRegistry:
    return EntityRegistry(entity_descriptors())
