#!/usr/bin/env python3
"""
Thin wrapper around the OpenCV KinectFusion engine (cv2.kinfu)

Volume integration, pose tracking and ray-casting all happen inside the
engine; this module only configures it and converts its outputs.
"""

import cv2
import numpy as np

from .config import Config, initialize_parameters

# preset name -> cv2.kinfu.Params factory
PRESETS = {
    'default': 'defaultParams',
    'coarse': 'coarseParams',
}


class FusionUnavailableError(RuntimeError):
    """OpenCV was built without the rgbd contrib module (or without KinFu)"""


def _kinfu_module():
    kinfu = getattr(cv2, 'kinfu', None)
    if kinfu is None:
        raise FusionUnavailableError(
            "cv2.kinfu not found. Install opencv-contrib-python built with OPENCV_ENABLE_NONFREE")
    return kinfu


def create_params(preset='default'):
    """
    Create engine parameters for a preset

    Args:
        preset: 'default' or 'coarse'

    Returns:
        cv2.kinfu.Params
    """
    if preset not in PRESETS:
        raise ValueError(f"Unknown fusion preset: {preset} (choose from {', '.join(PRESETS)})")

    kinfu = _kinfu_module()
    factory = getattr(kinfu.Params, PRESETS[preset], None)
    if factory is None:
        # Older bindings only expose the flattened static name
        factory = getattr(kinfu, 'Params_' + PRESETS[preset])
    return factory()


def _create_engine(params):
    kinfu = _kinfu_module()
    create = getattr(kinfu.KinFu, 'create', None)
    if create is None:
        create = kinfu.KinFu_create
    try:
        return create(params)
    except cv2.error as e:
        raise FusionUnavailableError(f"Failed to create KinFu: {e}") from e


def points_to_array(points, color=None):
    """
    Convert engine points to a (N, 6) [X, Y, Z, R, G, B] array

    Args:
        points: (N, 3) or (N, 1, 4) / (N, 4) point array from the engine
        color: RGB in 0-1 applied to every point (default: Config.CLOUD_COLOR)

    Returns:
        (N, 6) float32 array
    """
    if color is None:
        color = Config.CLOUD_COLOR

    if points is None or np.size(points) == 0:
        return np.zeros((0, 6), dtype=np.float32)

    points = np.asarray(points, dtype=np.float32)
    width = points.shape[-1]
    xyz = points.reshape(-1, width)[:, :3]

    rgb = np.tile(np.asarray(color, dtype=np.float32), (len(xyz), 1))
    return np.concatenate([xyz, rgb], axis=-1)


class FusionEngine:
    """KinectFusion engine configured for one depth camera"""

    def __init__(self, intrinsics, preset=Config.ENGINE_PRESET):
        self.preset = preset
        self.params = create_params(preset)
        self.intrinsics = initialize_parameters(
            self.params,
            intrinsics.width, intrinsics.height,
            intrinsics.fx, intrinsics.fy,
            intrinsics.depth_factor
        )
        self.kinfu = _create_engine(self.params)

        self.frames_integrated = 0
        self.reset_count = 0

        print(f"✓ KinFu created ({preset} preset): {self.intrinsics}")

    def update(self, depth):
        """
        Integrate a depth frame

        Args:
            depth: (H, W) depth image in raw device units

        Returns:
            bool: False if the engine lost tracking on this frame
        """
        ok = bool(self.kinfu.update(depth))
        if ok:
            self.frames_integrated += 1
        return ok

    def reset(self):
        """Drop the accumulated volume and restart tracking"""
        self.kinfu.reset()
        self.frames_integrated = 0
        self.reset_count += 1

    def render(self):
        """Shaded rendering of the volume from the current camera pose"""
        return self.kinfu.render()

    def get_points(self):
        """
        Get fused surface points

        Returns:
            (N, 3) float32 array in meters
        """
        points = self.kinfu.getPoints()
        if points is None or np.size(points) == 0:
            return np.zeros((0, 3), dtype=np.float32)
        points = np.asarray(points, dtype=np.float32)
        return points.reshape(-1, points.shape[-1])[:, :3]

    def get_cloud(self):
        """
        Get fused surface points with normals

        Returns:
            points: (N, 3) float32 array
            normals: (N, 3) float32 array
        """
        points, normals = self.kinfu.getCloud()
        if points is None or np.size(points) == 0:
            empty = np.zeros((0, 3), dtype=np.float32)
            return empty, empty.copy()

        points = np.asarray(points, dtype=np.float32)
        normals = np.asarray(normals, dtype=np.float32)
        return (points.reshape(-1, points.shape[-1])[:, :3],
                normals.reshape(-1, normals.shape[-1])[:, :3])
