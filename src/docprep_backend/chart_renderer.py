"""
Chart rasterization for Chart.js-style specifications.

Sections describe charts with the configuration object a browser would pass to
Chart.js (``type``, ``data.labels``, ``data.datasets``, ``options``). The
rasterizer draws the supported subset with matplotlib's object-oriented API on
the Agg canvas, so every call owns its own ``Figure`` and no pyplot global
state is touched.

Supported types:
    - bar (horizontal when ``options.indexAxis == "y"``, or ``horizontalBar``)
    - line
    - pie, doughnut
    - scatter
    - radar
"""

from __future__ import annotations

import copy
import io
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.colors import to_rgba
from matplotlib.figure import Figure

from .exceptions import ChartSpecError

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ("bar", "horizontalbar", "line", "pie", "doughnut", "scatter", "radar")

# Keys that would let a spec resize or reflow the canvas
LAYOUT_OPTION_KEYS = ("responsive", "maintainAspectRatio", "aspectRatio", "width", "height", "devicePixelRatio")

_RGB_FUNCTION = re.compile(r"^rgba?\((?P<args>[^)]*)\)$", re.IGNORECASE)


def css_color(value: Any) -> Optional[tuple]:
    """
    Convert a CSS color string to an RGBA tuple matplotlib understands.

    Accepts hex (``#rgb``, ``#rrggbb``, ``#rrggbbaa``), ``rgb()``/``rgba()``
    and named colors. Unparseable values return ``None`` so the default color
    cycle is used.

    Example:
        >>> css_color("rgba(255, 0, 0, 0.5)")
        (1.0, 0.0, 0.0, 0.5)
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    match = _RGB_FUNCTION.match(text)
    if match:
        parts = [part for part in re.split(r"[\s,/]+", match.group("args").strip()) if part]
        if len(parts) not in (3, 4):
            return None
        try:
            channels = [_channel(part) for part in parts[:3]]
            alpha = _alpha(parts[3]) if len(parts) == 4 else 1.0
        except ValueError:
            return None
        return (channels[0], channels[1], channels[2], alpha)
    try:
        return to_rgba(text)
    except ValueError:
        return None


def _channel(text: str) -> float:
    if text.endswith("%"):
        return min(max(float(text[:-1]) / 100.0, 0.0), 1.0)
    return min(max(float(text) / 255.0, 0.0), 1.0)


def _alpha(text: str) -> float:
    if text.endswith("%"):
        return min(max(float(text[:-1]) / 100.0, 0.0), 1.0)
    return min(max(float(text), 0.0), 1.0)


def _color_list(value: Any, count: int) -> Optional[List[tuple]]:
    """Per-point colors, cycled to ``count`` entries."""
    if isinstance(value, (list, tuple)):
        colors = [css_color(item) for item in value]
        if not colors or any(color is None for color in colors):
            return None
        return [colors[index % len(colors)] for index in range(count)]
    color = css_color(value)
    return [color] * count if color is not None else None


def _single_color(value: Any) -> Optional[tuple]:
    if isinstance(value, (list, tuple)):
        return css_color(value[0]) if value else None
    return css_color(value)


def _number(value: Any) -> float:
    if value is None:
        return math.nan
    if isinstance(value, bool):
        raise ChartSpecError(f"Invalid data point: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise ChartSpecError(f"Invalid data point: {value!r}") from exc
    raise ChartSpecError(f"Invalid data point: {value!r}")


def _point(value: Any) -> tuple:
    if isinstance(value, Mapping):
        return _number(value.get("x")), _number(value.get("y"))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return _number(value[0]), _number(value[1])
    raise ChartSpecError(f"Invalid chart point: {value!r}")


def without_layout_overrides(spec: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``spec`` with canvas-resizing keys removed.

    ``responsive`` and ``maintainAspectRatio`` are forced off, and any width,
    height or aspect ratio hints at the top level or under ``options`` are
    dropped. The caller's mapping is not modified.
    """
    cleaned = copy.deepcopy(dict(spec))
    for key in LAYOUT_OPTION_KEYS:
        cleaned.pop(key, None)
    options = cleaned.get("options")
    options = dict(options) if isinstance(options, Mapping) else {}
    for key in LAYOUT_OPTION_KEYS:
        options.pop(key, None)
    options["responsive"] = False
    options["maintainAspectRatio"] = False
    cleaned["options"] = options
    return cleaned


class ChartRasterizer:
    """
    Draw chart specifications onto a fixed-size PNG canvas.

    Attributes:
        width: Canvas width in pixels
        height: Canvas height in pixels
        dpi: Resolution used to convert the pixel size into figure inches
    """

    def __init__(self, width: int = 800, height: int = 400, dpi: int = 100) -> None:
        if width <= 0 or height <= 0 or dpi <= 0:
            raise ValueError("Chart canvas dimensions must be positive")
        self.width = int(width)
        self.height = int(height)
        self.dpi = int(dpi)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return self.width, self.height

    def render(self, spec: Any) -> bytes:
        """
        Render ``spec`` and return the PNG file contents.

        Raises:
            ChartSpecError: If the specification is malformed or its type is
                not supported
        """
        if not isinstance(spec, Mapping):
            raise ChartSpecError("Chart config must be an object")

        spec = without_layout_overrides(spec)
        chart_type = spec.get("type")
        if not isinstance(chart_type, str) or chart_type.lower() not in SUPPORTED_TYPES:
            raise ChartSpecError(f"Unsupported chart type: {chart_type!r}")
        chart_type = chart_type.lower()

        data = spec.get("data")
        if not isinstance(data, Mapping):
            raise ChartSpecError("Chart config requires a 'data' object")
        datasets = data.get("datasets")
        if not isinstance(datasets, list) or not datasets:
            raise ChartSpecError("Chart config requires a non-empty 'data.datasets' list")
        if not all(isinstance(dataset, Mapping) for dataset in datasets):
            raise ChartSpecError("Every dataset must be an object")
        labels = data.get("labels") or []
        if not isinstance(labels, list):
            raise ChartSpecError("'data.labels' must be a list")
        labels = [str(label) for label in labels]
        options = spec["options"]

        figure = Figure(figsize=(self.width / self.dpi, self.height / self.dpi), dpi=self.dpi)
        FigureCanvasAgg(figure)
        figure.patch.set_facecolor("white")

        if chart_type == "radar":
            axes = figure.add_subplot(projection="polar")
            self._draw_radar(axes, labels, datasets)
        else:
            axes = figure.add_subplot()
            if chart_type in ("bar", "horizontalbar"):
                horizontal = chart_type == "horizontalbar" or options.get("indexAxis") == "y"
                self._draw_bar(axes, labels, datasets, horizontal)
            elif chart_type == "line":
                self._draw_line(axes, labels, datasets)
            elif chart_type in ("pie", "doughnut"):
                self._draw_pie(axes, labels, datasets, doughnut=chart_type == "doughnut")
            else:
                self._draw_scatter(axes, datasets)

        self._decorate(figure, axes, options)
        figure.tight_layout()

        buffer = io.BytesIO()
        figure.savefig(buffer, format="png", dpi=self.dpi, facecolor=figure.get_facecolor())
        logger.debug(f"Rendered {chart_type} chart with {len(datasets)} dataset(s) at {self.width}x{self.height}")
        return buffer.getvalue()

    def _draw_bar(self, axes, labels: List[str], datasets: Sequence[Mapping[str, Any]], horizontal: bool) -> None:
        series = [[_number(value) for value in dataset.get("data") or []] for dataset in datasets]
        count = max([len(labels)] + [len(values) for values in series])
        group_width = 0.8
        bar_width = group_width / len(series)

        for index, (dataset, values) in enumerate(zip(datasets, series)):
            values = values + [math.nan] * (count - len(values))
            offsets = [position - group_width / 2 + bar_width * (index + 0.5) for position in range(count)]
            kwargs = {
                "color": _color_list(dataset.get("backgroundColor"), count),
                "edgecolor": _color_list(dataset.get("borderColor"), count),
                "label": dataset.get("label"),
            }
            if horizontal:
                axes.barh(offsets, values, height=bar_width, **kwargs)
            else:
                axes.bar(offsets, values, width=bar_width, **kwargs)

        ticks = list(range(count))
        tick_labels = labels + [""] * (count - len(labels))
        if horizontal:
            axes.set_yticks(ticks, tick_labels)
            axes.invert_yaxis()
        else:
            axes.set_xticks(ticks, tick_labels)

    def _draw_line(self, axes, labels: List[str], datasets: Sequence[Mapping[str, Any]]) -> None:
        count = len(labels)
        categorical = True
        for dataset in datasets:
            raw = dataset.get("data") or []
            if any(isinstance(value, Mapping) for value in raw):
                # {x, y} points place themselves on a numeric x axis
                points = [_point(value) for value in raw]
                positions = [x for x, _ in points]
                values = [y for _, y in points]
                categorical = False
            else:
                values = [_number(value) for value in raw]
                positions = list(range(len(values)))
                count = max(count, len(values))
            color = _single_color(dataset.get("borderColor")) or _single_color(dataset.get("backgroundColor"))
            (line,) = axes.plot(positions, values, marker="o", color=color, label=dataset.get("label"))
            if dataset.get("fill"):
                fill_color = _single_color(dataset.get("backgroundColor")) or line.get_color()
                axes.fill_between(positions, values, color=fill_color, alpha=0.3)
        if labels and categorical:
            axes.set_xticks(list(range(count)), labels + [""] * (count - len(labels)))

    def _draw_pie(self, axes, labels: List[str], datasets: Sequence[Mapping[str, Any]], doughnut: bool) -> None:
        # Chart.js draws one ring per dataset, outermost first
        ring_width = (0.5 if doughnut else 1.0) / len(datasets)
        for index, dataset in enumerate(datasets):
            values = [_number(value) for value in dataset.get("data") or []]
            values = [0.0 if math.isnan(value) else value for value in values]
            if not values or sum(values) <= 0:
                raise ChartSpecError("Pie and doughnut datasets need positive values")
            radius = 1.0 - ring_width * index
            wedges, _ = axes.pie(
                values,
                radius=radius,
                colors=_color_list(dataset.get("backgroundColor"), len(values)),
                startangle=90,
                counterclock=False,
                wedgeprops={"width": ring_width, "edgecolor": "white"},
            )
            if index == 0 and labels:
                for wedge, label in zip(wedges, labels):
                    wedge.set_label(label)
        axes.set_aspect("equal")

    def _draw_scatter(self, axes, datasets: Sequence[Mapping[str, Any]]) -> None:
        for dataset in datasets:
            points = [_point(value) for value in dataset.get("data") or []]
            axes.scatter(
                [x for x, _ in points],
                [y for _, y in points],
                color=_single_color(dataset.get("backgroundColor")),
                edgecolors=_single_color(dataset.get("borderColor")),
                label=dataset.get("label"),
            )

    def _draw_radar(self, axes, labels: List[str], datasets: Sequence[Mapping[str, Any]]) -> None:
        count = max([len(labels)] + [len(dataset.get("data") or []) for dataset in datasets])
        if count < 3:
            raise ChartSpecError("Radar charts need at least three axes")
        angles = [2 * math.pi * index / count for index in range(count)]
        for dataset in datasets:
            values = [_number(value) for value in dataset.get("data") or []]
            values = values + [math.nan] * (count - len(values))
            color = _single_color(dataset.get("borderColor"))
            (line,) = axes.plot(angles + angles[:1], values + values[:1], color=color, label=dataset.get("label"))
            fill_color = _single_color(dataset.get("backgroundColor")) or line.get_color()
            axes.fill(angles + angles[:1], values + values[:1], color=fill_color, alpha=0.25)
        axes.set_xticks(angles, labels + [""] * (count - len(labels)))

    def _decorate(self, figure: Figure, axes, options: Mapping[str, Any]) -> None:
        plugins = options.get("plugins") if isinstance(options.get("plugins"), Mapping) else {}

        # Chart.js v3+ keeps title/legend under plugins, v2 at the top of options
        title = plugins.get("title", options.get("title"))
        if isinstance(title, Mapping) and title.get("display", True) and title.get("text"):
            text = title["text"]
            axes.set_title("\n".join(map(str, text)) if isinstance(text, list) else str(text))

        legend = plugins.get("legend", options.get("legend"))
        show_legend = not (isinstance(legend, Mapping) and legend.get("display") is False)
        if show_legend:
            handles, handle_labels = axes.get_legend_handles_labels()
            if handles:
                axes.legend(handles, handle_labels)
