from typing import Optional, Tuple


def parse_command(raw: Optional[str], username: Optional[str] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    split a command message into (command, argument)

    input 1: /timeout 30                => ("timeout", "30")
    input 2: /Timeout@bot_name 30       => ("timeout", "30")
    input 3: /onjoin Hello $u\nWelcome  => ("onjoin", "Hello $u\nWelcome")
    input 4: /status                    => ("status", None)
    input 5: hello                      => (None, None)

    commands addressed to another bot (``/cmd@other_bot``) are ignored when
    ``username`` is known
    """
    if not raw or not raw.startswith("/"):
        return None, None

    parts = raw.split(maxsplit=1)
    command = parts[0][1:]

    command, _, mention = command.partition("@")
    if mention and username and mention.lower() != username.lower():
        return None, None

    if not command:
        return None, None

    argument = parts[1].strip() if len(parts) > 1 else ""

    return command.lower(), argument or None
