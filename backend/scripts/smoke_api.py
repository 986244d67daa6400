"""
Smoke test against a running server.
Creates the default trip, adds places, drags one to another day, records
costs and prints the summary.
Run: python scripts/smoke_api.py [base_url]
"""
import json
import sys
import urllib.error
import urllib.parse
import urllib.request

API = (sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8000") + "/api"


def call(method, path, body=None, **params):
    url = f"{API}{path}"
    if params:
        url += "?" + urllib.parse.urlencode(params)
    data = json.dumps(body).encode() if body is not None else None
    req = urllib.request.Request(url, data=data, method=method, headers={"Content-Type": "application/json"})
    try:
        return json.loads(urllib.request.urlopen(req).read())
    except urllib.error.HTTPError as e:
        print(f"  {method} {path} -> {e.code}: {e.read().decode()}")
        raise


print("=== TEST 1: Health ===")
h = call("GET", "/health/")
print(f"  Status: {h['status']} | trips={h['trips']} places={h['places']} expenses={h['expenses']}")
assert h["status"] == "healthy"

print("\n=== TEST 2: Default trip ===")
trip = call("POST", "/trips/ensure")
trip_id = trip["id"]
print(f"  {trip['title']} ({trip['startDate']} ~ {trip['endDate']}, {trip['totalDays']} days) created={trip['created']}")

print("\n=== TEST 3: Add places ===")
names = []
for name, day in (("Smoke A", 1), ("Smoke B", 1), ("Smoke C", 2)):
    p = call("POST", "/places", {"name": name, "tripId": trip_id, "day": day, "startTime": "10:00"})
    names.append(p)
    print(f"  {p['name']}: day {p['day']} #{p['order']} {p['time']}")

print("\n=== TEST 4: Drag Smoke A onto day 2 ===")
moved = call("POST", "/places/move", {"tripId": trip_id, "activeId": names[0]["id"], "overId": "day-2"})
a = next(p for p in moved["places"] if p["id"] == names[0]["id"])
print(f"  moved={moved['moved']} -> day {a['day']} #{a['order']}")
assert moved["moved"] and a["day"] == 2
print("  PASS")

print("\n=== TEST 5: THB expense ===")
e = call("POST", f"/expenses/place/{names[1]['id']}", {"amount": 100, "currency": "THB"})
print(f"  {e['description']}: {e['amount']:,.0f} {e['currency']} ({e['category']})")
assert e["amount"] == 4300
print("  PASS")

print("\n=== TEST 6: Summary ===")
s = call("GET", "/expenses/summary", tripId=trip_id)
print(f"  Total: {s['totalSpent']:,.0f} KRW | by day: {s['dailyTotals']} | used {s['budget']['percentUsed']}%")

print("\n=== TEST 7: Calculator ===")
c = call("GET", "/exchange/convert", amount="100", **{"from": "THB"})
print(f"  100 THB = {c['converted']:,.0f} KRW @ {c['rate']}")

print("\n=== Cleanup ===")
for p in names:
    call("DELETE", f"/places/{p['id']}")
call("DELETE", f"/expenses/{e['id']}")
print("  Smoke places and expense removed")
print("\nALL SMOKE TESTS PASSED")
