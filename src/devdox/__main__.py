"""Entry point: python -m devdox [issue-key USER_ID]."""

import asyncio
import sys

import uvicorn

from devdox.app import create_app
from devdox.auth import issue_api_key
from devdox.config import Settings
from devdox.db import init_db


async def _issue_key(settings: Settings, user_id: str) -> str:
    db = await init_db(settings.db_path)
    try:
        return await issue_api_key(db, user_id)
    finally:
        await db.close()


def main(argv: list[str]) -> int:
    settings = Settings.from_env()
    if argv[:1] == ["issue-key"]:
        if len(argv) != 2:
            print("usage: python -m devdox issue-key USER_ID", file=sys.stderr)
            return 2
        print(asyncio.run(_issue_key(settings, argv[1])))
        return 0

    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
