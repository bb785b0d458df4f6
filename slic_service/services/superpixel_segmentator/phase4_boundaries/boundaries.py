import numpy as np

RENDER_REGISTRY = {}


def register_renderer(name):
    def decorator(cls):
        RENDER_REGISTRY[name] = cls()
        return cls
    return decorator


class RenderStrategy:
    def render(self, labels, color=None):
        raise NotImplementedError


# =========================================
# BOUNDARY DETECTION
# =========================================

def find_boundaries(labels: np.ndarray) -> np.ndarray:
    """
    Boolean (H, W) mask of pixels whose 4-neighborhood leaves the region.
    Out-of-bounds neighbors count as different, so the border ring is
    always marked.
    """
    boundary = np.zeros(labels.shape, dtype=bool)
    boundary[0, :] = boundary[-1, :] = True
    boundary[:, 0] = boundary[:, -1] = True

    horizontal = labels[:, 1:] != labels[:, :-1]
    boundary[:, 1:] |= horizontal
    boundary[:, :-1] |= horizontal

    vertical = labels[1:, :] != labels[:-1, :]
    boundary[1:, :] |= vertical
    boundary[:-1, :] |= vertical

    return boundary


# =========================================
# RENDERERS
# =========================================

@register_renderer("boundary")
class BoundaryOverlay(RenderStrategy):
    """Opaque highlight on boundary pixels, transparent everywhere else."""

    def render(self, labels, color=(255, 0, 0, 255)):
        h, w = labels.shape
        out = np.zeros((h, w, 4), dtype=np.uint8)
        out[find_boundaries(labels)] = color
        return out


@register_renderer("pseudocolor")
class PseudoColorFill(RenderStrategy):
    """
    Debug fill: a stable pseudo-color per label with partial alpha.
    Unassigned (-1) pixels are painted opaque white.
    """

    ALPHA = 90

    def render(self, labels, color=None):
        h, w = labels.shape
        lbl = labels.astype(np.int64)

        out = np.empty((h, w, 4), dtype=np.uint8)
        out[..., 0] = (lbl * 90) % 255
        out[..., 1] = (lbl * 47) % 255
        out[..., 2] = (lbl * 173) % 255
        out[..., 3] = self.ALPHA

        out[labels < 0] = (255, 255, 255, 255)
        return out


# =========================================
# COMPOSITING
# =========================================

def composite(image_rgb: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    """
    Alpha-blend an RGBA overlay on top of an RGB uint8 image.
    """
    alpha = overlay[..., 3:4].astype(np.float32) / 255.0
    blended = overlay[..., :3] * alpha + image_rgb[..., :3] * (1.0 - alpha)
    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)
