import asyncio
import logging

from guardianbot.bot import main


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.getLogger("guardianbot").info("Bot stopped manually")


if __name__ == "__main__":
    run()
