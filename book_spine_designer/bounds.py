"""
Artwork zoom and offset bounds for a stack layout.
"""

# Standard Library
import dataclasses
import math

# local repo modules
import book_spine_designer as bsd
import book_spine_designer.config
import book_spine_designer.geometry
import book_spine_designer.layout


ART_SAFE_MARGIN_SIDE_MM = bsd.config.ART_SAFE_MARGIN_SIDE_MM
ART_SAFE_MARGIN_VERTICAL_MM = bsd.config.ART_SAFE_MARGIN_VERTICAL_MM
ARTWORK_PIXELS_PER_MM = bsd.config.ARTWORK_PIXELS_PER_MM
ZOOM_MAX = bsd.config.ZOOM_MAX

StackMetrics = bsd.layout.StackMetrics
clamp = bsd.geometry.clamp


@dataclasses.dataclass(frozen=True)
class Auto:
	pass


@dataclasses.dataclass(frozen=True)
class Manual:
	value: object


# Manual zoom holds a float, manual offset holds an (x, y) tuple in mm.
ZoomMode = Auto | Manual
OffsetMode = Auto | Manual


@dataclasses.dataclass(frozen=True)
class ArtworkBounds:
	safe_width_mm: float
	safe_height_mm: float
	container_width_mm: float
	container_height_mm: float
	base_width_mm: float
	base_height_mm: float
	min_zoom: float


@dataclasses.dataclass(frozen=True)
class OffsetLimits:
	min_x: float
	max_x: float
	min_y: float
	max_y: float

	def clamp_offset(self, offset: tuple[float, float]) -> tuple[float, float]:
		return (
			clamp(offset[0], self.min_x, self.max_x),
			clamp(offset[1], self.min_y, self.max_y),
		)

	@property
	def centered(self) -> tuple[float, float]:
		return self.clamp_offset((0.0, 0.0))


@dataclasses.dataclass(frozen=True)
class ArtworkState:
	natural_width_mm: float
	natural_height_mm: float
	zoom: ZoomMode = Auto()
	offset: OffsetMode = Auto()


@dataclasses.dataclass(frozen=True)
class ResolvedArtwork:
	zoom: float
	offset_x: float
	offset_y: float
	limits: OffsetLimits


#============================================
def artwork_size_from_pixels(
	width_px: int,
	height_px: int,
	fallback_width_mm: float,
	fallback_height_mm: float,
) -> tuple[float, float]:
	"""
	Convert decoded artwork pixels to a natural size in millimetres.

	Args:
		width_px: Image pixel width.
		height_px: Image pixel height.
		fallback_width_mm: Width used when the image reports zero pixels.
		fallback_height_mm: Height used when the image reports zero pixels.

	Returns:
		Tuple of (width_mm, height_mm).
	"""
	width_mm = width_px / ARTWORK_PIXELS_PER_MM if width_px > 0 else fallback_width_mm
	height_mm = height_px / ARTWORK_PIXELS_PER_MM if height_px > 0 else fallback_height_mm
	return (width_mm, height_mm)


#============================================
def compute_artwork_bounds(
	metrics: StackMetrics,
	natural_width_mm: float,
	natural_height_mm: float,
) -> ArtworkBounds:
	"""
	Compute the safe area and minimum zoom for the artwork.

	At min_zoom the scaled artwork covers the safe area on both axes, so any
	offset inside the legal range keeps every spine covered.

	Args:
		metrics: Stack metrics.
		natural_width_mm: Artwork natural width (0 when unknown).
		natural_height_mm: Artwork natural height (0 when unknown).

	Returns:
		ArtworkBounds.
	"""
	safe_width_mm = metrics.total_width_mm + ART_SAFE_MARGIN_SIDE_MM * 2.0
	safe_height_mm = metrics.max_height_mm + ART_SAFE_MARGIN_VERTICAL_MM * 2.0
	fallback_width_mm = metrics.required_width_mm or safe_width_mm
	fallback_height_mm = metrics.required_height_mm or safe_height_mm
	base_width_mm = natural_width_mm or fallback_width_mm
	base_height_mm = natural_height_mm or fallback_height_mm

	min_zoom = 1.0
	if base_width_mm > 0.0 and base_height_mm > 0.0:
		raw = max(safe_width_mm / base_width_mm, safe_height_mm / base_height_mm)
		if math.isfinite(raw) and raw > 0.0:
			min_zoom = raw

	return ArtworkBounds(
		safe_width_mm=safe_width_mm,
		safe_height_mm=safe_height_mm,
		container_width_mm=metrics.required_width_mm,
		container_height_mm=metrics.required_height_mm,
		base_width_mm=base_width_mm,
		base_height_mm=base_height_mm,
		min_zoom=min_zoom,
	)


#============================================
def compute_offset_limits(bounds: ArtworkBounds, zoom: float) -> OffsetLimits:
	"""
	Compute the symmetric offset range for a zoom level.

	Args:
		bounds: Artwork bounds.
		zoom: Candidate zoom.

	Returns:
		OffsetLimits, collapsed to zero when the art exactly covers the safe area.
	"""
	art_width_mm = bounds.base_width_mm * zoom
	art_height_mm = bounds.base_height_mm * zoom
	room_x = max((art_width_mm - bounds.safe_width_mm) / 2.0, 0.0)
	room_y = max((art_height_mm - bounds.safe_height_mm) / 2.0, 0.0)
	return OffsetLimits(min_x=-room_x, max_x=room_x, min_y=-room_y, max_y=room_y)


#============================================
def zoom_range(bounds: ArtworkBounds) -> tuple[float, float]:
	return (bounds.min_zoom, max(ZOOM_MAX, bounds.min_zoom))


#============================================
def reclamp_artwork(state: ArtworkState, bounds: ArtworkBounds) -> tuple[ArtworkState, ResolvedArtwork]:
	"""
	Re-apply the zoom and offset policy after the stack or image changed.

	Auto zoom snaps to the new minimum and a manual zoom below it is raised.
	Manual offsets are clamped into the new range, auto offsets stay centered.

	Args:
		state: Current artwork state.
		bounds: Freshly computed bounds.

	Returns:
		Tuple of (new_state, resolved) where new_state carries the clamped
		manual values.
	"""
	zoom_mode = state.zoom
	if isinstance(zoom_mode, Manual):
		zoom = max(float(zoom_mode.value), bounds.min_zoom)
		zoom_mode = Manual(zoom)
	else:
		zoom = bounds.min_zoom
	limits = compute_offset_limits(bounds, zoom)

	offset_mode = state.offset
	if isinstance(offset_mode, Manual):
		offset = limits.clamp_offset(offset_mode.value)
		offset_mode = Manual(offset)
	else:
		offset = limits.centered

	new_state = dataclasses.replace(state, zoom=zoom_mode, offset=offset_mode)
	resolved = ResolvedArtwork(zoom=zoom, offset_x=offset[0], offset_y=offset[1], limits=limits)
	return (new_state, resolved)


#============================================
def set_manual_zoom(state: ArtworkState, bounds: ArtworkBounds, zoom: float) -> ArtworkState:
	"""
	Apply a user zoom, never below the minimum.

	Args:
		state: Current artwork state.
		bounds: Current bounds.
		zoom: Requested zoom.

	Returns:
		New state in manual zoom mode.
	"""
	low, high = zoom_range(bounds)
	return dataclasses.replace(state, zoom=Manual(clamp(zoom, low, high)))


#============================================
def set_manual_offset(
	state: ArtworkState,
	bounds: ArtworkBounds,
	offset_x: float | None = None,
	offset_y: float | None = None,
) -> ArtworkState:
	"""
	Apply a user offset on one or both axes.

	Args:
		state: Current artwork state.
		bounds: Current bounds.
		offset_x: Horizontal offset in mm, None keeps the current value.
		offset_y: Vertical offset in mm, None keeps the current value.

	Returns:
		New state in manual offset mode, clamped for the current zoom.
	"""
	_, resolved = reclamp_artwork(state, bounds)
	requested = (
		resolved.offset_x if offset_x is None else offset_x,
		resolved.offset_y if offset_y is None else offset_y,
	)
	return dataclasses.replace(state, offset=Manual(resolved.limits.clamp_offset(requested)))


#============================================
def reset_artwork_state(natural_width_mm: float, natural_height_mm: float) -> ArtworkState:
	"""
	Default state for a freshly loaded image.
	"""
	return ArtworkState(
		natural_width_mm=natural_width_mm,
		natural_height_mm=natural_height_mm,
	)
