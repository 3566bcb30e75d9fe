"""Python client for a DCE server.

Connects, waits for the action manifest, makes one RPC call and prints
push messages addressed to the ``Notifications`` consumer.

    pip install dce-client

    python examples/client_python.py --url ws://localhost:8000/dce/ \
        --action billing.invoice.create --data '{"amount": 10}'
"""

import argparse
import asyncio
import json
import signal

from dce_client import DCEError, connect


async def main(url: str, action: str, data: dict, debug: bool):
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    client = connect(url, debug=debug)

    @client.consumer
    class Notifications:
        def consumer(self, data, error, error_data):
            if error:
                print(f"[Notifications] error: {error} {error_data}")
            else:
                print(f"[Notifications] {data}")

    async with client:
        await client.wait_until_ready()
        print(f"Connected to {url} (server v{client.version})")
        for line in client.get_stats()["actions"]:
            print(f"  {line}")

        try:
            result = await client.call(action, data)
            print(f"{action} -> {result}")
        except DCEError as exc:
            print(f"{action} failed: {exc}")

        print("Listening for push messages... (Ctrl+C to stop)\n")
        await stop.wait()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="DCE Python client")
    parser.add_argument("--url", default="ws://localhost:8000/dce/")
    parser.add_argument("--action", required=True, help="Dotted action name")
    parser.add_argument("--data", default="{}", help="JSON payload (default: {})")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    asyncio.run(main(args.url, args.action, json.loads(args.data), args.debug))
