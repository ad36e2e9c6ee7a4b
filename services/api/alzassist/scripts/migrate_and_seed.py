from __future__ import annotations
import os, subprocess, sys
from pathlib import Path

import structlog
from sqlalchemy import create_engine, insert, select

from alzassist import tables as t
from alzassist.config import settings
from alzassist.repositories import new_id, utcnow

log = structlog.get_logger("alzassist-migrate")

ALEMBIC_INI = os.environ.get("ALEMBIC_CONFIG", str(Path(__file__).resolve().parents[2] / "alembic.ini"))

def seed(conn) -> None:
    """Demo patient and caretaker with an accepted connection. Safe to run repeatedly."""
    now = utcnow()
    demo = [
        (settings.demo_patient_id, "PATIENT", settings.demo_patient_name),
        (settings.demo_caretaker_id, "CARETAKER", settings.demo_caretaker_name),
    ]
    for pid, role, name in demo:
        if conn.execute(select(t.profiles.c.id).where(t.profiles.c.id == pid)).first() is None:
            conn.execute(insert(t.profiles).values(id=pid, role=role, name=name, created_at=now))

    pair = select(t.connections.c.id).where(
        t.connections.c.caretaker_id == settings.demo_caretaker_id,
        t.connections.c.patient_id == settings.demo_patient_id,
    )
    if conn.execute(pair).first() is None:
        conn.execute(insert(t.connections).values(
            id=new_id(),
            caretaker_id=settings.demo_caretaker_id,
            patient_id=settings.demo_patient_id,
            status="ACCEPTED",
            created_at=now,
        ))

def main():
    db_url = settings.database_url_migrator or settings.database_url
    if not db_url:
        raise SystemExit("No database URL configured (set DATABASE_URL or DATABASE_URL_MIGRATOR)")

    env = dict(os.environ, DATABASE_URL_MIGRATOR=db_url)
    subprocess.run([sys.executable, "-m", "alembic", "-c", ALEMBIC_INI, "upgrade", "head"], check=True, env=env)

    eng = create_engine(db_url, future=True)
    with eng.begin() as c:
        seed(c)
    log.info("seed.complete", patient_id=settings.demo_patient_id, caretaker_id=settings.demo_caretaker_id)

if __name__ == "__main__":
    main()
