from __future__ import annotations

import logging
import time
import zlib
from typing import Any, Mapping

import requests

from ..game.errors import GenerationFailure
from ..game.prompts import pick_stock_image
from .costs import CostTracker


logger = logging.getLogger(__name__)


class ImageGenerator:
    """Turns a prompt into an image URL. Failures raise ``GenerationFailure``."""

    provider = "base"

    def generate(self, prompt: str) -> str:
        raise NotImplementedError


class MockImageGenerator(ImageGenerator):
    provider = "mock"

    def __init__(self, delay_sec: float = 0.0) -> None:
        self.delay_sec = delay_sec

    def generate(self, prompt: str) -> str:
        if self.delay_sec > 0:
            time.sleep(self.delay_sec)
        # Same prompt, same picture.
        seed = zlib.crc32(prompt.encode("utf-8"))
        return f"https://picsum.photos/512/512?random={seed}"


class StockImageGenerator(ImageGenerator):
    provider = "stock"

    def generate(self, prompt: str) -> str:
        return pick_stock_image()


class TogetherImageGenerator(ImageGenerator):
    provider = "together"

    def __init__(
        self,
        api_key: str,
        api_url: str,
        model: str,
        timeout: float = 60.0,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()

    def generate(self, prompt: str) -> str:
        try:
            resp = self.session.post(
                self.api_url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "width": 1024,
                    "height": 1024,
                    "steps": 20,
                    "n": 1,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise GenerationFailure(f"Together API request failed: {exc}") from exc

        if not resp.ok:
            raise GenerationFailure(f"Together API error: {resp.status_code} - {resp.text[:200]}")

        try:
            data = resp.json()
            return data["data"][0]["url"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise GenerationFailure("Invalid response format from Together API") from exc


class TrackedImageGenerator(ImageGenerator):
    """Counts successful generations per provider."""

    def __init__(self, inner: ImageGenerator, tracker: CostTracker) -> None:
        self.inner = inner
        self.tracker = tracker
        self.provider = inner.provider

    def generate(self, prompt: str) -> str:
        url = self.inner.generate(prompt)
        self.tracker.track(self.provider)
        return url


def build_image_generator(config: Mapping[str, Any], tracker: CostTracker | None = None) -> ImageGenerator:
    provider = str(config.get("IMAGE_PROVIDER", "mock")).strip().lower()

    if provider == "together":
        generator: ImageGenerator = TogetherImageGenerator(
            api_key=config.get("TOGETHER_API_KEY", ""),
            api_url=config.get("TOGETHER_API_URL", "https://api.together.xyz/v1/images/generations"),
            model=config.get("TOGETHER_MODEL", "black-forest-labs/FLUX.1-dev"),
            timeout=float(config.get("IMAGE_TIMEOUT_SEC", 60)),
        )
    elif provider == "stock":
        generator = StockImageGenerator()
    elif provider == "mock":
        generator = MockImageGenerator(delay_sec=float(config.get("MOCK_IMAGE_DELAY_SEC", 0)))
    else:
        raise ValueError(f"Unsupported image provider: {provider}")

    logger.info(f"[image-provider] provider={generator.provider}")
    if tracker is not None:
        return TrackedImageGenerator(generator, tracker)
    return generator
