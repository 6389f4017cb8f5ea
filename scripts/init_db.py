import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.db.init_db import init_db
from app.db.session import SessionLocal
from app.services.rule_store import RuleStore, SQLAlchemyStorage

if __name__ == "__main__":
    print("Creating database tables...")
    init_db()
    rules = RuleStore(SQLAlchemyStorage(SessionLocal)).load()
    print(f"Rule store ready with {len(rules)} rules.")
