from typing import List

from eventhub.bus import EventHub


async def greet(hub: EventHub) -> List[str]:
    # Two listeners on one event, delivered in subscription order
    heard: List[str] = []

    def l1(name: str) -> None:
        heard.append(f"L1 greets {name}")

    def l2(name: str) -> None:
        heard.append(f"L2 greets {name}")

    hub.subscribe("greet", l1)
    hub.subscribe("greet", l2)
    hub.publish("greet", "Ada")
    heard.append("publisher continues")
    await hub.scheduler.drain()
    return heard


async def once_only(hub: EventHub) -> List[str]:
    heard: List[str] = []

    def ready(n: int) -> None:
        heard.append(f"ready #{n}")

    hub.subscribe("ready", ready, once=True)
    for n in range(1, 4):
        hub.publish("ready", n)
        await hub.scheduler.drain()
    heard.append(f"still subscribed: {'ready' in hub}")
    return heard


async def faulty_listener(hub: EventHub) -> List[str]:
    heard: List[str] = []

    def broken(code: int) -> None:
        raise RuntimeError(f"cannot handle {code}")

    async def healthy(code: int) -> None:
        heard.append(f"healthy got {code}")

    hub.subscribe("alarm", broken)
    hub.subscribe("alarm", healthy)
    hub.publish("alarm", 42)
    await hub.scheduler.drain()
    heard.append(f"failed={hub.stats.failed} delivered={hub.stats.delivered}")
    return heard


SCENARIOS = {
    "1": greet,
    "2": once_only,
    "3": faulty_listener,
}
