from __future__ import annotations

import random


FILLER_PROMPTS = ["cat", "sunset", "robot", "flower", "mountain"]

STOCK_IMAGES = [
    "https://images.unsplash.com/photo-1574158622682-e40e69881006?w=512&h=512&fit=crop",  # cat
    "https://images.unsplash.com/photo-1518717758536-85ae29035b6d?w=512&h=512&fit=crop",  # dog
    "https://images.unsplash.com/photo-1506905925346-21bda4d32df4?w=512&h=512&fit=crop",  # sunset
    "https://images.unsplash.com/photo-1506794778202-cad84cf45f1d?w=512&h=512&fit=crop",  # mountain
    "https://images.unsplash.com/photo-1441974231531-c6227db76b6e?w=512&h=512&fit=crop",  # forest
    "https://images.unsplash.com/photo-1485827404703-89b55fcc595e?w=512&h=512&fit=crop",  # robot
    "https://images.unsplash.com/photo-1490750967868-88aa4486c946?w=512&h=512&fit=crop",  # flower
    "https://images.unsplash.com/photo-1449824913935-59a10b8d2000?w=512&h=512&fit=crop",  # city
    "https://images.unsplash.com/photo-1551963831-b3b1ca40c98e?w=512&h=512&fit=crop",  # breakfast
    "https://images.unsplash.com/photo-1507525428034-b723cf961d3e?w=512&h=512&fit=crop",  # beach
]

RANDOM_IMAGE_PROMPT = "random image"


def pick_filler_prompt(rng: random.Random | None = None) -> str:
    return (rng or random).choice(FILLER_PROMPTS)


def pick_stock_image(rng: random.Random | None = None) -> str:
    return (rng or random).choice(STOCK_IMAGES)
