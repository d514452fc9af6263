from __future__ import annotations

from threading import RLock


# USD per generated image.
UNIT_COSTS: dict[str, float] = {
    "together": 0.008,
    "mock": 0.0,
    "stock": 0.0,
}


class CostTracker:
    def __init__(self, unit_costs: dict[str, float] | None = None) -> None:
        self._lock = RLock()
        self.unit_costs = dict(unit_costs or UNIT_COSTS)
        self.usage: dict[str, int] = {provider: 0 for provider in self.unit_costs}

    def track(self, provider: str) -> None:
        with self._lock:
            if provider in self.usage:
                self.usage[provider] += 1

    def total_cost(self) -> float:
        with self._lock:
            return sum(count * self.unit_costs[p] for p, count in self.usage.items())

    def usage_stats(self) -> dict:
        with self._lock:
            usage = dict(self.usage)
            total_cost = self.total_cost()
        total_images = sum(usage.values())
        return {
            "totalImages": total_images,
            "totalCost": f"{total_cost:.4f}",
            "breakdown": [
                {
                    "provider": provider,
                    "images": count,
                    "cost": f"{count * self.unit_costs[provider]:.4f}",
                    "percentage": f"{count / total_images * 100:.1f}" if total_images else "0",
                }
                for provider, count in usage.items()
            ],
        }
