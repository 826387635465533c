import sys
import os

# Add parent directory to path to allow importing expense_budget
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from expense_budget.database import SessionLocal, init_db
from expense_budget.services.repository import EventRepository, ExpenseCategoryRepository

EVENTS = [
    ("1Q", "1Q", 1),
    ("2Q", "2Q", 2),
    ("3Q", "3Q", 3),
    ("4Q", "4Q", 4),
    ("利計標準", "利計標準", 5),
    ("利計中間", "利計中間", 6),
    ("利計最終", "利計最終", 7),
]

EXPENSE_CATEGORIES = [
    ("TRAVEL", "旅費交通費"),
    ("MEAL", "会議費"),
    ("SUPPLY", "消耗品費"),
    ("OUTSOURCE", "外注費"),
    ("AD", "広告宣伝費"),
]

def seed(db) -> dict:
    """Insert the standard events and categories; active codes already present are skipped."""
    created = {"events": 0, "expense_categories": 0}

    events = EventRepository(db)
    for code, name, order in EVENTS:
        if events.get_active_by_code(code):
            continue
        events.create({"event_code": code, "event_name": name, "event_order": order})
        created["events"] += 1

    categories = ExpenseCategoryRepository(db)
    for code, name in EXPENSE_CATEGORIES:
        if categories.get_active_by_code(code):
            continue
        categories.create({"expense_category_code": code, "expense_category_name": name})
        created["expense_categories"] += 1

    return created

if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        result = seed(db)
        print(f"Seed completed: {result['events']} events, {result['expense_categories']} expense categories created.")
    except Exception as e:
        print(f"Seed failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()
