ROLE_ADMIN = "admin"
ROLE_TEAM_LEADER = "team leader"
ROLE_NORMAL_USER = "normal user"

SYSTEM_ROLES = (ROLE_ADMIN, ROLE_TEAM_LEADER, ROLE_NORMAL_USER)

KIND_SYSTEM = "System"
KIND_CUSTOM = "Custom"

STATUS_WAIT_FOR_SCHEDULE = "WAIT_FOR_SCHEDULE"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_FINISHED = "FINISHED"

PROJECT_STATUSES = (STATUS_WAIT_FOR_SCHEDULE, STATUS_IN_PROGRESS, STATUS_FINISHED)
