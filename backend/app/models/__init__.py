# Import the models here so SQLAlchemy registers them before create_all
from app.models.user import User, Role, UserRole  # noqa: F401
from app.models.teams import Team, TeamMember  # noqa: F401
from app.models.projects import Project, ProjectMember  # noqa: F401
from app.models.audit import AuditLog  # noqa: F401
from app.models.auth_session import AuthSession  # noqa: F401
