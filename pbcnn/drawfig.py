# Copyright (c) 2022-2025, Yongchao Wu in Aalto University
# This file is from the pbcnn project, released under the BSD 3-Clause License.

"""
Writer for xfig 3.2 drawings (see ``man fig2dev`` or the xfig user manual
for the format). Used to draw bond networks and displacement maps that can
be converted to eps/pdf with ``fig2dev``.
"""

from __future__ import annotations
import math
import sys
from pathlib import Path
from typing import IO, Optional, Union

# colors
BLACK = 0
BLUE = 1
GREEN = 2
CYAN = 3
RED = 4
MAGENTA = 5
YELLOW = 6
WHITE = 7

# area fill
NOFILL = -1
BLACKFILL = 0
FULLFILL = 20
WHITEFILL = 40

# postscript fonts
FONT_DEFAULT = -1
FONT_TIMES_ROMAN = 0
FONT_TIMES_ITALIC = 1
FONT_TIMES_BOLD = 2
FONT_AVANTGARDE_BOOK = 4
FONT_BOOKMAN_LIGHT = 8
FONT_COURIER = 12
FONT_COURIER_BOLD = 14
FONT_HELVETICA = 16
FONT_HELVETICA_BOLD = 18
FONT_NEW_CENTURY_SCHOOLBOOK_ROMAN = 24
FONT_PALATINO_ROMAN = 28
FONT_SYMBOL = 32
FONT_ZAPF_CHANCERY_MEDIUM_ITALIC = 33
FONT_ZAPF_DINGBATS = 34
FONT_MAX = 34


class FigWriter:
    """
    Write lines, vectors, circles and text to an xfig 3.2 file.

    Floating point coordinates are scaled by ``scale`` and shifted so that
    ``(x_origin, y_origin)`` lands on the page center with y pointing up.
    Pass ``fig_units=True`` to a drawing method to give raw integer fig
    coordinates (1200 per inch, y pointing down) instead.

    Parameters
    ----------
    file : str, Path or file object, optional
        Output file. A path is opened here and closed by :meth:`close`;
        a file object is left open. Defaults to ``sys.stdout``.
    portrait : bool, optional
        Portrait (True) or landscape (False) letter page. Defaults to True.
    scale : float, optional
        Fig units per user unit. Defaults to 1.0.
    x_origin, y_origin : float, optional
        User coordinates of the page center. Default to 0.

    Examples
    --------
    .. code-block:: python

        from pbcnn.drawfig import FigWriter, RED

        with FigWriter("bonds.fig", scale=600.0) as fig:
            fig.pencolor = RED
            fig.line(0.0, 0.0, 1.0, 0.5)
            fig.circle(0.0, 0.0, 0.1)
            fig.text(0.0, -0.3, "Fe")
    """

    def __init__(
        self,
        file: Optional[Union[str, Path, IO[str]]] = None,
        portrait: bool = True,
        scale: float = 1.0,
        x_origin: float = 0.0,
        y_origin: float = 0.0,
    ):
        if file is None:
            self._out = sys.stdout
            self._opened = False
        elif isinstance(file, (str, Path)):
            self._out = open(file, "w")
            self._opened = True
        else:
            self._out = file
            self._opened = False
        self.a0 = scale
        self.xc = x_origin
        self.yc = y_origin

        self.verbose = 0
        self.pencolor = BLACK
        self.linethickness = 1
        self.linestyle = 0
        self.dotdist = 0.0
        self.depth = 50

        self.arrow_type = 2
        self.arrow_filled = 1
        self.arrow_thick = 1.0
        self.arrow_width = 0.1
        self.arrow_height = 0.2

        self.fillcolor = BLACK
        self.fill = NOFILL

        self.font = FONT_COURIER
        self.pointsize = 10.0

        self._write_header(portrait)

    def _write_header(self, portrait: bool):
        if portrait:
            orientation, self.width, self.height = "Portrait", 10200, 13200
        else:
            orientation, self.width, self.height = "Landscape", 13200, 10200
        self._out.write(
            f"#FIG 3.2\n{orientation}\nCenter\nInches\nLetter\n100.00\nSingle\n-2\n1200 2\n"
        )
        self.XC = self.width // 2
        self.YC = self.height // 2

    def close(self):
        if self._opened and not self._out.closed:
            self._out.close()

    def __enter__(self) -> FigWriter:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    # ---------------------------------------------------------------
    # styles
    # ---------------------------------------------------------------
    def arrowstyle(
        self,
        arrow_type: int,
        filled: int,
        thick: float,
        length_percent: float,
        aspect: float,
    ):
        """
        Set the arrow head of vectors.

        ``length_percent`` is the head length as a percentage of the
        vector length, the head width is ``aspect`` times the head length.
        Out of range values leave the corresponding setting unchanged.
        """
        if 0 <= arrow_type <= 3:
            self.arrow_type = arrow_type
        if filled in (0, 1):
            self.arrow_filled = filled
        if thick > 0.0:
            self.arrow_thick = thick
        if length_percent > 0:
            self.arrow_height = length_percent * 0.01
            if aspect > 0:
                self.arrow_width = length_percent * 0.01 * aspect

    def fillstyle(self, color: int, style: int):
        """Set fill color (0-31) and fill style (-1 to 40) for circles and triangles."""
        if 0 <= color <= 31:
            self.fillcolor = color
        if -1 <= style <= 40:
            self.fill = style

    def textstyle(self, font: int, pointsize: float):
        """Set font and point size; ``FONT_DEFAULT`` or ``pointsize <= 0`` keep the current value."""
        if pointsize > 0.0:
            self.pointsize = pointsize
        if 0 <= font <= FONT_MAX:
            self.font = font

    # ---------------------------------------------------------------
    # coordinate conversion
    # ---------------------------------------------------------------
    def conv_x(self, x: float) -> int:
        return int(self.a0 * (x - self.xc)) + self.XC

    def conv_y(self, y: float) -> int:
        return -int(self.a0 * (y - self.yc)) + self.YC

    def conv_vx(self, vx: float) -> int:
        return int(self.a0 * vx)

    def conv_vy(self, vy: float) -> int:
        return -int(self.a0 * vy)

    def _comment(self, kind: str, *values):
        if self.verbose > 0:
            self._out.write(f"# {kind} " + " ".join(f"{v}" for v in values) + "\n")

    # ---------------------------------------------------------------
    # objects
    # ---------------------------------------------------------------
    def line(self, x0, y0, x1, y1, fig_units: bool = False):
        """Line from (x0, y0) to (x1, y1)."""
        if not fig_units:
            self._comment("line", x0, y0, x1, y1)
            x0, y0, x1, y1 = self.conv_x(x0), self.conv_y(y0), self.conv_x(x1), self.conv_y(y1)
        if (x0 - x1) ** 2 + (y0 - y1) ** 2 < 1:
            return
        self._out.write(
            f"2 1 {self.linestyle} {self.linethickness} {self.pencolor} 0 {self.depth} 0 -1 "
            f"{self.dotdist:.3f} 0 0 0 0 0 2\n"
        )
        self._out.write(f"{x0} {y0} {x1} {y1}\n")

    def triangle(self, x0, y0, x1, y1, x2, y2, fig_units: bool = False):
        """Closed triangle filled with the current fill style."""
        if not fig_units:
            self._comment("triangle", x0, y0, x1, y1, x2, y2)
            x0, y0 = self.conv_x(x0), self.conv_y(y0)
            x1, y1 = self.conv_x(x1), self.conv_y(y1)
            x2, y2 = self.conv_x(x2), self.conv_y(y2)
        if (x0 - x1) ** 2 + (y0 - y1) ** 2 < 1:
            return
        self._out.write(
            f"2 3 {self.linestyle} {self.linethickness} {self.pencolor} {self.fillcolor} "
            f"{self.depth} 0 {self.fill} {self.dotdist:.3f} 0 0 0 0 0 4\n"
        )
        self._out.write(f"{x0} {y0} {x1} {y1} {x2} {y2} {x0} {y0}\n")

    def vector(self, x, y, vx, vy, fig_units: bool = False):
        """Arrow starting at (x, y) with components (vx, vy)."""
        if not fig_units:
            self._comment("vector", x, y, vx, vy)
            x, y, vx, vy = self.conv_x(x), self.conv_y(y), self.conv_vx(vx), self.conv_vy(vy)
        if vx * vx + vy * vy < 1:
            return
        length = math.sqrt(vx * vx + vy * vy)
        self._out.write(
            f"2 1 {self.linestyle} {self.linethickness} {self.pencolor} 0 {self.depth} 0 -1 "
            f"{self.dotdist:.3f} 0 0 0 1 0 2\n"
        )
        self._out.write(
            f"{self.arrow_type} {self.arrow_filled} {self.arrow_thick:.3f} "
            f"{self.arrow_width * length:.3f} {self.arrow_height * length:.3f}\n"
        )
        self._out.write(f"{x} {y} {x + vx} {y + vy}\n")

    def cvector(self, x, y, vx, vy, fig_units: bool = False):
        """Arrow with components (vx, vy) centered on (x, y)."""
        if fig_units:
            self.vector(x - int(vx / 2), y - int(vy / 2), vx, vy, fig_units=True)
        else:
            self.vector(x - vx * 0.5, y - vy * 0.5, vx, vy)

    def circle(self, x, y, r, fig_units: bool = False):
        """Circle of radius r centered on (x, y)."""
        if not fig_units:
            self._comment("circle", x, y, r)
            x, y, r = self.conv_x(x), self.conv_y(y), self.conv_vx(r)
        if r < 1:
            return
        self._out.write(
            f"1 3 {self.linestyle} {self.linethickness} {self.pencolor} {self.fillcolor} "
            f"{self.depth} 0 {self.fill} {self.dotdist:.3f} 1 0 "
            f"{x} {y} {r} {r} {x + r} {y} {x + r} {y}\n"
        )

    def text(self, x, y, s: str, fig_units: bool = False):
        """Centered string ``s`` at (x, y)."""
        if not fig_units:
            self._comment("text", x, y, s)
            x, y = self.conv_x(x), self.conv_y(y)
        length = 10.0 * self.pointsize * len(s)
        height = 10.0 * self.pointsize
        self._out.write(
            f"4 1 {self.pencolor} {self.depth} 0 {self.font} {self.pointsize:.3f} 0. 6 "
            f"{height:.3f} {length:.3f} {x} {y} {s}\\001\n"
        )
