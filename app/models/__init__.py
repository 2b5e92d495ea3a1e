from app.models.audit_event import AuditEvent
from app.models.calendar_event import CalendarEvent
from app.models.client import Client
from app.models.contract import Contract
from app.models.contract_project import ContractProject
from app.models.project import Project
from app.models.project_skill import ProjectSkill
from app.models.rate_card import RateCard
from app.models.rbac import Role, UserRole
from app.models.skill import Skill
from app.models.user import User

__all__ = [ "AuditEvent", "CalendarEvent", "Client", "Contract",
           "ContractProject", "Project", "ProjectSkill", "RateCard",
           "Role", "UserRole", "Skill", "User" ]
