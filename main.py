#!/usr/bin/python3

from handlers import *  # noqa
from manager import manager


async def main():
    manager.setup()

    try:
        # polling stops by itself on SIGINT / SIGTERM
        await manager.start()
    finally:
        await manager.stop()
        manager.logger.info("bot is stopped")


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
