"""
Exception types raised by the layout and rendering pipeline.
"""


class SpineDesignerError(Exception):
	"""
	Base class for designer errors.
	"""


class InvalidInputError(SpineDesignerError, ValueError):
	"""
	Book list rejected before layout (empty list, bad dimension, duplicate id).
	"""


class ArtworkUnavailableError(SpineDesignerError):
	"""
	Artwork could not be decoded.
	"""


class SurfaceAcquisitionError(SpineDesignerError):
	"""
	Rendering backend could not allocate a drawing target.
	"""


class GeometryDegenerateError(SpineDesignerError):
	"""
	Layout with no books reached a step that needs at least one.
	"""
