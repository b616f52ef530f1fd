#!/usr/bin/env python3
"""Smoke test a running tagdiff server."""

import argparse
import json
import sys

import requests


def smoke_api(base_url: str) -> int:
    """Compare the two newest tags through the JSON API."""
    print(f"Testing tagdiff server at {base_url}...")

    try:
        response = requests.get(f"{base_url}/api/tags", timeout=600)
        print(f"Status Code: {response.status_code}")
        if response.status_code != 200:
            print(f"❌ HTTP Error: {response.status_code}")
            print(response.text[:500])
            return 1

        tags = response.json()["data"]["tags"]
        print(f"Tags: {len(tags)}")
        if len(tags) < 2:
            print("ℹ️  Fewer than two tags, nothing to compare")
            return 0

        newest, previous = tags[0]["name"], tags[1]["name"]
        response = requests.get(f"{base_url}/api/changes/{previous}/{newest}", timeout=60)
        result = response.json()

        if result.get("ok"):
            data = result["data"]
            print(f"✅ {previous} -> {newest}: {len(data['changes'])} files changed")
            print(f"File changes by type: {data['counts']}")
            with open("api_response.json", "w") as f:
                json.dump(result, f, indent=2)
            print("Response saved to api_response.json")
            return 0

        error = result.get("error", {})
        print("❌ Error in response")
        print(f"Error Code: {error.get('code')}")
        print(f"Error Message: {error.get('message')}")
        return 1

    except requests.exceptions.RequestException as e:
        print(f"❌ Request failed: {e}")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--url", default="http://127.0.0.1:8000")
    sys.exit(smoke_api(parser.parse_args().url))
