"""Send reminder emails for tomorrow's events; meant to run once a day from cron."""

import asyncio
import logging

import eventify.database as database
from eventify.services.reminders import send_event_reminders

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)


async def main() -> None:
    async with database.async_session() as session:
        run = await send_event_reminders(session)
    print(f"Sent {run.emails_sent} reminder emails for {run.events} events ({run.failures} failed).")


if __name__ == "__main__":
    asyncio.run(main())
