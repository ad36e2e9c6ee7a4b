from __future__ import annotations

import uvicorn

from alzassist.config import settings


def main() -> None:
    if settings.alzassist_run_mode.lower() == "migrate":
        from alzassist.scripts.migrate_and_seed import main as migrate
        migrate()
        return
    from alzassist.app import app
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
