from .member_verify import group_message  # noqa: F401
