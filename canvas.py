import logging
import os

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

WHITE = 255
BLACK = 0


class Canvas:
    """A single-channel intensity buffer, the sole output of a render pass.

    Pixels are addressed as (x, y) with x the column and y the scan row.
    Samples are integers in [0, 255]; a fresh canvas is all white.
    """

    def __init__(self, width, height, fill=WHITE):
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas must be at least 1x1, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self._pixels = np.full((self.height, self.width), fill, dtype=np.uint8)

    def _in_bounds(self, x, y):
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x, y):
        """Return the intensity at (x, y), or None if out of range."""
        if not self._in_bounds(x, y):
            return None
        return int(self._pixels[y, x])

    def set(self, x, y, value):
        """Write an intensity, clamped to [0, 255].

        Return:
          bool -- False if (x, y) is out of range and nothing was written
        """
        if not self._in_bounds(x, y):
            return False
        self._pixels[y, x] = int(np.clip(value, BLACK, WHITE))
        return True

    def ink(self, x, y):
        """Set a pixel to black."""
        return self.set(x, y, BLACK)

    def rows(self):
        """Iterate over scan rows top to bottom, each a list of ints."""
        for row in self._pixels:
            yield [int(v) for v in row]

    def as_array(self):
        """Return a copy of the buffer as a (height, width) uint8 array."""
        return self._pixels.copy()

    def to_pgm(self):
        """Serialize as an ASCII graymap (P2), one scan row per line."""
        lines = ["P2", f"{self.width} {self.height}", str(WHITE)]
        lines.extend(" ".join(str(v) for v in row) for row in self.rows())
        return "\n".join(lines) + "\n"

    def to_pbm(self):
        """Serialize as an ASCII bitmap (P1): background is 0, anything drawn is 1."""
        lines = ["P1", f"{self.width} {self.height}"]
        lines.extend(" ".join("0" if v == WHITE else "1" for v in row) for row in self.rows())
        return "\n".join(lines) + "\n"

    def write(self, path):
        """Write the canvas to a file, choosing the format by extension.

        .pgm and .pbm are written as ASCII text; any other extension is handed
        to Pillow.  I/O errors, and extensions Pillow cannot write, raise OSError.
        """
        ext = os.path.splitext(str(path))[1].lower()
        if ext == ".pgm":
            with open(path, "w") as f:
                f.write(self.to_pgm())
        elif ext == ".pbm":
            with open(path, "w") as f:
                f.write(self.to_pbm())
        else:
            try:
                Image.fromarray(self._pixels).save(path)
            except ValueError as e:
                # Pillow rejects extensions it has no writer for
                raise OSError(f"cannot write {path}: {e}") from e
        logger.info("Wrote %dx%d canvas to %s", self.width, self.height, path)

    def __eq__(self, other):
        if not isinstance(other, Canvas):
            return NotImplemented
        return np.array_equal(self._pixels, other._pixels)

    def __repr__(self):
        return f"Canvas({self.width}, {self.height})"
