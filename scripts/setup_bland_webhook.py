#!/usr/bin/env python3
"""Setup script: point Bland.ai inbound numbers at the call intake webhook.

Usage:
    # List all inbound numbers and their current webhook URLs:
    python scripts/setup_bland_webhook.py --list

    # Set webhook URL for all inbound numbers:
    python scripts/setup_bland_webhook.py --webhook-url https://api.example.com/api/v1/webhooks/bland

    # Set webhook URL for a single number:
    python scripts/setup_bland_webhook.py --webhook-url https://api.example.com/api/v1/webhooks/bland --phone-number +14155550100

Requires:
    BLAND_API_KEY environment variable (or in .env)
"""

import argparse
import os
import sys

import httpx

BLAND_BASE_URL = os.environ.get("BLAND_BASE_URL", "https://api.bland.ai/v1")


def get_api_key() -> str:
    key = os.environ.get("BLAND_API_KEY", "")
    if not key and os.path.exists(".env"):
        with open(".env") as f:
            for line in f:
                line = line.strip()
                if line.startswith("BLAND_API_KEY="):
                    key = line.split("=", 1)[1].strip().strip('"').strip("'")
                    break
    if not key:
        print("ERROR: BLAND_API_KEY not found in environment or .env")
        sys.exit(1)
    return key


def headers(api_key: str) -> dict:
    return {
        "Authorization": api_key,
        "Content-Type": "application/json",
    }


def list_numbers(api_key: str) -> list:
    resp = httpx.get(f"{BLAND_BASE_URL}/inbound", headers=headers(api_key))
    resp.raise_for_status()
    return resp.json().get("inbound_numbers") or []


def update_number_webhook(api_key: str, phone_number: str, webhook_url: str) -> dict:
    resp = httpx.post(
        f"{BLAND_BASE_URL}/inbound/{phone_number}",
        headers=headers(api_key),
        json={"webhook": webhook_url},
    )
    resp.raise_for_status()
    return resp.json()


def main():
    parser = argparse.ArgumentParser(description="Configure Bland.ai inbound number webhook URL")
    parser.add_argument("--list", action="store_true", help="List inbound numbers and their webhook URLs")
    parser.add_argument("--webhook-url", type=str, help="Webhook URL to set")
    parser.add_argument("--phone-number", type=str, help="Specific number (if omitted, applies to all numbers)")
    args = parser.parse_args()

    api_key = get_api_key()

    if args.list or not args.webhook_url:
        numbers = list_numbers(api_key)
        if not numbers:
            print("No inbound numbers found in your Bland account.")
            return
        print(f"\n{'Phone Number':<20} {'Webhook URL'}")
        print("-" * 90)
        for number in numbers:
            print(f"{number.get('phone_number', '?'):<20} {number.get('webhook') or '(not set)'}")
        print(f"\nTotal: {len(numbers)} number(s)")
        return

    if args.phone_number:
        print(f"Updating {args.phone_number}...")
        update_number_webhook(api_key, args.phone_number, args.webhook_url)
        print(f"  ✅ {args.phone_number} → {args.webhook_url}")
        return

    numbers = list_numbers(api_key)
    if not numbers:
        print("No inbound numbers found.")
        return
    print(f"Updating {len(numbers)} number(s)...")
    for number in numbers:
        phone_number = number["phone_number"]
        try:
            update_number_webhook(api_key, phone_number, args.webhook_url)
            print(f"  ✅ {phone_number} → {args.webhook_url}")
        except httpx.HTTPError as e:
            print(f"  ❌ {phone_number}: {e}")
    print("\nDone.")


if __name__ == "__main__":
    main()
