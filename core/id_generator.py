import uuid

# Tables whose rows get a generated string id on insert
ENTITIES = {
    "users",
    "auth_sessions",
    "profiles",
    "user_roles",
    "knights",
    "stigmas",
    "battles",
    "battle_comments",
    "battle_reactions",
    "user_knights",
}


def generate_random_id(entity: str) -> str:
    """Returns a UUID4 string id for the given table."""
    if entity not in ENTITIES:
        raise ValueError(f"Unknown entity for ID generation: {entity}")
    return str(uuid.uuid4())
