"""
Subscribe to a plan from the terminal: prints the checkout link, writes the
payment QR to a PNG and waits for the subscription to turn Active.

Usage:
  TRAVEL_API_TOKEN=... python scripts/watch_payment.py --plan-id 2 --qr-out qr.png
"""
import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.config import settings  # noqa: E402
from app.core.logger import configure_logging, get_logger  # noqa: E402
from app.integrations.travel_api import TravelApiClient  # noqa: E402
from app.schemas.subscription import CreateSubscriptionRequest  # noqa: E402
from app.services.payment_checker import create_payment_checker  # noqa: E402
from app.services.qr_code import render_qr_png  # noqa: E402

logger = get_logger("watch_payment")


async def watch(plan_id: int, qr_out: Path | None) -> int:
    async with TravelApiClient() as client:
        result = await client.create_subscription(CreateSubscriptionRequest(plan_id=plan_id))
        print(f"Order code:   {result.order_code}")
        print(f"Checkout URL: {result.checkout_url}")
        if result.qr_code and qr_out:
            qr_out.write_bytes(render_qr_png(result.qr_code))
            print(f"QR written to {qr_out}")

        checker = create_payment_checker(
            lambda sub: print(f"Payment confirmed: subscription {sub.id} ({sub.status_label})"),
            lambda message: print(f"ERROR: {message}"),
            client,
        )
        await asyncio.to_thread(input, "Press Enter once the payment is completed...")
        checker.start_checking()
        outcome = await checker.wait_for_outcome()
        return 0 if outcome is not None and outcome.is_confirmed else 1


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--plan-id", type=int, required=True)
    parser.add_argument("--qr-out", type=Path, default=None)
    args = parser.parse_args()

    configure_logging(settings.log_level)
    sys.exit(asyncio.run(watch(args.plan_id, args.qr_out)))


if __name__ == "__main__":
    main()
