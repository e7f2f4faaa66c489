"""
Dashboard Load Simulation

Signs in, checks each screen once, then fires concurrent product
creations against a running server to exercise the CRUD workflow.
Run from project root: python scripts/simulate.py
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from typing import Any, Optional

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_PRODUCTS = 50
ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@menu.local")
ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin123")

# Sample data for random products
DISHES = ["Burger", "Pizza", "Hot Dog", "Salad", "Pastel", "Acai", "Tapioca", "Coxinha", "Juice", "Soda"]
STYLES = ["Classic", "Special", "Double", "Veggie", "House", "Mini", "Large"]


def generate_product_payload() -> dict[str, Any]:
    """Random product form, prices in the comma decimal format the form sends."""
    price = round(random.uniform(5, 60), 2)
    on_sale = random.random() < 0.3
    return {
        "name": f"{random.choice(STYLES)} {random.choice(DISHES)}",
        "description": random.choice(["", "Made to order", "Chef's choice"]),
        "price": f"{price:.2f}".replace(".", ","),
        "discount_price": f"{price * 0.8:.2f}" if on_sale else "",
        "available": random.random() > 0.1,
        "category_id": "no-category",
        "stock": str(random.randint(0, 100)),
    }


async def login(client: httpx.AsyncClient) -> Optional[str]:
    response = await client.post(
        f"{API_BASE_URL}/api/auth/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD},
    )
    if response.status_code != 200:
        print(f"   ❌ Login failed: {response.text}")
        return None
    return response.json()["access_token"]


async def send_product(
    client: httpx.AsyncClient,
    product_num: int,
) -> dict[str, Any]:
    """Create one product."""
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/api/products",
            json=generate_product_payload(),
            timeout=30.0,
        )
    except httpx.HTTPError as e:
        return {
            "product_num": product_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 201:
        return {
            "product_num": product_num,
            "success": True,
            "product_id": response.json()["data"]["id"],
            "time": elapsed,
        }
    return {
        "product_num": product_num,
        "success": False,
        "error": response.text[:100],
        "time": elapsed,
    }


async def run_simulation(client: httpx.AsyncClient, num_products: int = TOTAL_PRODUCTS) -> dict[str, Any]:
    """
    Create products concurrently, then compare the listing total.

    Args:
        client: Signed-in client
        num_products: Number of products to create
    """
    print("=" * 70)
    print("🔥 LOAD SIMULATION - CONCURRENT PRODUCT CREATION")
    print("=" * 70)
    print(f"📋 Products: {num_products}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    before = (await client.get(f"{API_BASE_URL}/api/products")).json()["total"]

    start_time = time.time()
    results = await asyncio.gather(*(send_product(client, i + 1) for i in range(num_products)))
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    after = (await client.get(f"{API_BASE_URL}/api/products")).json()["total"]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Created: {len(successful)}/{num_products}")
    print(f"❌ Failed: {len(failed)}/{num_products}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        times = [r["time"] for r in successful]
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {round(sum(times) / len(times), 3)}s")
        print(f"   Fastest: {min(times)}s")
        print(f"   Slowest: {max(times)}s")

    if after - before == len(successful):
        print(f"\n✅ Listing total grew by {len(successful)}")
    else:
        print(f"\n⚠️ Listing total grew by {after - before}, expected {len(successful)}")

    if failed:
        print(f"\n⚠️  Failed Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Product #{f['product_num']}: {f.get('error', 'Unknown error')}")

    print("\n" + "=" * 70)
    return {
        "total": num_products,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
    }


async def test_single_flows(client: httpx.AsyncClient) -> bool:
    """Check each screen once before the load run."""
    print("\n" + "=" * 70)
    print("🧪 TESTING INDIVIDUAL FLOWS")
    print("=" * 70)

    print("\n1️⃣ Health Check...")
    response = await client.get(f"{API_BASE_URL}/health")
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False
    data = response.json()
    print(f"   ✅ Status: {data.get('status')}")
    print(f"   Backend: {data.get('backend')} ({data.get('backend_provider')})")
    print(f"   Redis: {data.get('redis')}")

    print("\n2️⃣ Dashboard...")
    response = await client.get(f"{API_BASE_URL}/api/dashboard")
    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False
    stats = response.json()
    print(f"   ✅ Products: {stats['total_products']}, Categories: {stats['total_categories']}")
    print(f"   Store: {stats['store_status_label']}")

    print("\n3️⃣ Opening Hours...")
    response = await client.put(
        f"{API_BASE_URL}/api/schedule",
        json={"days": [{"day": "sexta", "is_open": True, "open_time": "18:00", "close_time": "23:30"}]},
    )
    print(f"   {'✅' if response.status_code == 200 else '⚠️'} {response.json().get('message') or response.json().get('detail')}")

    print("\n4️⃣ Orders...")
    response = await client.get(f"{API_BASE_URL}/api/orders", params={"status": "all"})
    if response.status_code == 200:
        print(f"   ✅ {response.json()['total']} orders")
    else:
        print(f"   ❌ Failed: {response.text}")

    print("\n" + "=" * 70)
    return True


async def main(num_products: int, skip_tests: bool) -> int:
    async with httpx.AsyncClient() as client:
        token = await login(client)
        if token is None:
            return 1
        client.headers["Authorization"] = f"Bearer {token}"

        if not skip_tests and not await test_single_flows(client):
            print("\n❌ Pre-flight tests failed. Fix issues before running simulation.")
            return 1

        await run_simulation(client, num_products)
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Dashboard Load Simulation")
    parser.add_argument("--products", type=int, default=TOTAL_PRODUCTS, help="Number of products")
    parser.add_argument("--skip-tests", action="store_true", help="Skip individual flow checks")
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.products, args.skip_tests)))
