"""
Seed the configured database with the default Phuket trip, a sample
itinerary, a few expenses and a packing checklist.
Safe to re-run: the trip is reused and days that already have places
are left alone.
Run: python scripts/seed_sample_trip.py
"""

import os
import sys

# Add backend directory to path for package imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tripplanner.core.categories import CHECKLIST_CATEGORIES
from tripplanner.db.database import SessionLocal, init_db
from tripplanner.db.repositories import ChecklistRepository
from tripplanner.services.itinerary import ItineraryService, ensure_default_trip

SAMPLE_PLACES = [
    # (day, name, category, time, duration, cost THB)
    (1, "푸켓 국제공항", "flight", "10:00-11:00", "1시간", None),
    (1, "파통 비치", "tourist_attraction", "14:00-16:00", "2시간", None),
    (1, "반잔 시장", "restaurant", "18:00-19:00", "1시간", 450),
    (2, "피피섬 투어", "tourist_attraction", "08:00-16:00", "8시간", 1800),
    (2, "방라 로드", "shopping", "20:00-22:00", "2시간", None),
    (3, "빅 부다", "tourist_attraction", "09:00-10:00", "1시간", 100),
    (3, "올드타운", "tourist_attraction", "11:00-13:00", "2시간", None),
    (3, "원춘 레스토랑", "restaurant", "13:00-14:00", "1시간", 600),
    (4, "정실론", "shopping", "10:00-12:00", "2시간", None),
]

SAMPLE_CHECKLIST = [
    ("여권", "서류"),
    ("항공권 사본", "서류"),
    ("여름 옷", "의류"),
    ("수영복", "의류"),
    ("충전기", "전자제품"),
    ("멀티 어댑터", "전자제품"),
    ("선크림", "약품/화장품"),
    ("상비약", "약품/화장품"),
    ("우산", "여행용품"),
]


def main():
    init_db()
    db = SessionLocal()
    try:
        trip, created = ensure_default_trip(db)
        print(f"Trip: {trip['title']} ({trip['id']}) {'created' if created else 'reused'}")

        service = ItineraryService.for_trip(db, trip["id"])
        seeded_days = {p["day"] for p in service.places}
        added = 0
        for day, name, category, time, duration, cost in SAMPLE_PLACES:
            if day in seeded_days:
                continue
            place = service.add_place(name=name, day=day, category=category, time=time, duration=duration)
            if cost is not None:
                service.record_place_expense(place["id"], cost, currency="THB")
            added += 1
        print(f"Places added: {added}")

        checklist = ChecklistRepository(db)
        if not checklist.list_by_trip(trip["id"]):
            for title, category in SAMPLE_CHECKLIST:
                assert category in CHECKLIST_CATEGORIES
                checklist.create(trip["id"], title, category)
            print(f"Checklist items added: {len(SAMPLE_CHECKLIST)}")

        summary = service.summary()
        print(f"Total spent: {summary['totalSpent']:,.0f} KRW across {summary['expenseCount']} expenses")
    finally:
        db.close()


if __name__ == "__main__":
    main()
