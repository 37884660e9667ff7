"""
Family Role Permissions Configuration
Defines which actions each family membership role may perform.
Used by the family-scoped route dependencies in kyn.core.dependencies.
"""

# Define family-scoped modules and their actions
MODULES = {
    "family": {
        "resource": "family",
        "actions": ["read", "invite", "manage_tree"],
        "description": "Family membership and invites"
    },
    "feed": {
        "resource": "feed",
        "actions": ["read", "post", "comment"],
        "description": "Family feed posts and comments"
    },
    "messages": {
        "resource": "messages",
        "actions": ["read", "send"],
        "description": "Direct messages between family members"
    },
    "tasks": {
        "resource": "tasks",
        "actions": ["read", "create", "complete"],
        "description": "Shared family to-do list"
    },
    "events": {
        "resource": "events",
        "actions": ["read", "create", "rsvp"],
        "description": "Family calendar events and RSVPs"
    },
    "polls": {
        "resource": "polls",
        "actions": ["read", "create", "vote"],
        "description": "Family polls and votes"
    },
    "games": {
        "resource": "games",
        "actions": ["read", "create", "play"],
        "description": "Family trivia questions and leaderboard"
    },
}

# Membership roles. Every member can read and contribute; admins also manage the family.
ROLE_TYPES = {
    "admin": {
        "permissions": "*",
        "description": "Family administrator (the creator starts as one)"
    },
    "member": {
        "permissions": [
            "family:read", "feed:*", "messages:*", "tasks:*", "events:*", "polls:*", "games:*",
        ],
        "description": "Regular family member"
    }
}

VALID_ROLES = tuple(ROLE_TYPES.keys())


def get_permission_names():
    """All permission names in resource:action form"""
    names = []
    for module_config in MODULES.values():
        resource = module_config["resource"]
        for action in module_config["actions"]:
            names.append(f"{resource}:{action}")
    return names


def get_role_permissions(role: str):
    """
    Expand a role's permission patterns into concrete permission names.
    Unknown roles get no permissions.
    """
    role_config = ROLE_TYPES.get(role)
    if role_config is None:
        return []
    patterns = role_config["permissions"]
    all_names = get_permission_names()
    if patterns == "*":
        return all_names

    granted = []
    for name in all_names:
        resource = name.split(":", 1)[0]
        if name in patterns or f"{resource}:*" in patterns:
            granted.append(name)
    return granted


def role_has_permission(role: str, permission: str) -> bool:
    return permission in get_role_permissions(role)
