from __future__ import annotations

"""
Drawing surface and tile image acquisition.

Canvas wraps an (H, W, 3) uint8 BGR array, the layout OpenCV decodes into.
HttpTileLoader always decodes to 8-bit BGR, whatever the tile's bit depth
or alpha.
Tiles are blitted at their native size; anything falling outside the surface
is clipped.
"""

import math
from typing import Optional, Protocol

import cv2
import numpy as np
import requests
from requests.adapters import HTTPAdapter

from common.errors import TileLoadError


class TileLoader(Protocol):
    def load(self, url: str) -> np.ndarray:
        """Return a decoded image or raise TileLoadError."""
        ...


class Canvas:
    def __init__(self, width: int, height: int, background: int = 0):
        if width <= 0 or height <= 0:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.pixels = np.full((self.height, self.width, 3), background, dtype=np.uint8)

    @property
    def size(self):
        return (self.width, self.height)

    def draw_image(self, image: np.ndarray, dx: float, dy: float) -> None:
        """
        Paint `image` with its top-left corner at pixel (dx, dy), unscaled.
        Offsets are floored; all tiles of one render share the same fractional
        part, so neighbouring tiles stay edge to edge.
        """
        img = _to_bgr(image)
        h, w = img.shape[:2]
        x0 = math.floor(dx)
        y0 = math.floor(dy)

        # clip to surface
        sx0 = max(0, -x0)
        sy0 = max(0, -y0)
        sx1 = min(w, self.width - x0)
        sy1 = min(h, self.height - y0)
        if sx1 <= sx0 or sy1 <= sy0:
            return
        self.pixels[y0 + sy0 : y0 + sy1, x0 + sx0 : x0 + sx1] = img[sy0:sy1, sx0:sx1]

    def encode_png(self) -> bytes:
        ok, buf = cv2.imencode(".png", self.pixels)
        if not ok:
            raise RuntimeError("PNG encoding failed")
        return buf.tobytes()

    def save(self, path: str) -> None:
        if not cv2.imwrite(str(path), self.pixels):
            raise RuntimeError(f"could not write image to {path}")


def _to_bgr(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint16:
        # keep the high byte
        image = (image >> 8).astype(np.uint8)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return image


class HttpTileLoader:
    """
    Fetches tile images over HTTP and decodes them with OpenCV.

    One loader, and so one Session, serves every tile thread of a render.
    Only `Session.get` is called from those threads; cookies, headers and
    adapters are set up before the first render and not touched afterwards.
    A Session created here gets an HTTPAdapter whose pool holds `pool_size`
    connections, enough for every tile of a typical view to keep its own
    socket instead of urllib3 dropping the extras. A caller-supplied Session
    is used as is.

    Params:
        session: optional requests.Session for connection reuse across tiles
        timeout: per-request timeout in seconds
        pool_size: connections kept per host when the Session is created here
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10.0, pool_size: int = 32):
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session
        self.timeout = timeout

    def load(self, url: str) -> np.ndarray:
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TileLoadError(url, str(e)) from e
        if r.status_code != 200 or not r.content:
            raise TileLoadError(url, f"status {r.status_code}")
        arr = np.frombuffer(r.content, dtype=np.uint8)
        img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
        if img is None:
            raise TileLoadError(url, "undecodable image")
        return img
