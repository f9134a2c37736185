SETTINGS_TEMPLATE = {
    "default": {"debug": False},
    "telegram": {"token": ""},  # telegram robot token, optional "admin" chat for notifications
    "redis": {"dsn": "redis://localhost:6379/0"},
    "i18n": {"default_lang": "en_US"},
}
