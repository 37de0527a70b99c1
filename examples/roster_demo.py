"""Minimal demonstration of the roster core against a running chat backend."""

import asyncio
import json

from roster_core.api.service import create_roster_controller, view_to_dict


class PrintNavigator:
    def go(self, path: str) -> None:
        print("Navigate:", path)


class PrintNotifier:
    def notify(self, message: str) -> None:
        print("Notice:", message)


async def main() -> None:
    controller = create_roster_controller(PrintNavigator(), PrintNotifier())
    if not await controller.activate():
        return
    print(json.dumps(view_to_dict(controller.view()), ensure_ascii=False, indent=2))
    controller.deactivate()


if __name__ == "__main__":
    asyncio.run(main())
