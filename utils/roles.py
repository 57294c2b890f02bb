PARENT = "PARENT"
STUDENT = "STUDENT"
TUTOR = "TUTOR"
ADMIN = "ADMIN"

DEFAULT_ROLES = [PARENT, STUDENT, TUTOR, ADMIN]

# roles a user may pick for themselves at registration
SELF_SERVICE_ROLES = {PARENT, TUTOR}


def filter_role_names(roles):
    names = []
    for role in roles or []:
        name = role if isinstance(role, str) else getattr(role, "name", None)
        if name in DEFAULT_ROLES:
            names.append(name)
    return names
