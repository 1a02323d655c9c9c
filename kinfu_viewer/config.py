#!/usr/bin/env python3
"""
Configuration for the KinectFusion viewer
Stores display settings and derives camera intrinsics for the fusion engine
"""

import numpy as np
import open3d as o3d

FLOAT_EPSILON = float(np.finfo(np.float32).eps)


class CameraIntrinsics:
    """Pinhole intrinsics of the depth stream"""

    def __init__(self, width, height, fx, fy, cx, cy, depth_factor=1000.0):
        self.width = int(width)
        self.height = int(height)
        self.fx = float(fx)
        self.fy = float(fy)
        self.cx = float(cx)
        self.cy = float(cy)
        self.depth_factor = float(depth_factor)

    @property
    def frame_size(self):
        return (self.width, self.height)

    @property
    def camera_matrix(self):
        """3x3 camera matrix (float32, OpenCV layout)"""
        return np.array([
            [self.fx, 0.0, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0]
        ], dtype=np.float32)

    def to_open3d(self):
        """Same intrinsics as o3d.camera.PinholeCameraIntrinsic"""
        return o3d.camera.PinholeCameraIntrinsic(
            self.width, self.height,
            self.fx, self.fy,
            self.cx, self.cy
        )

    def __repr__(self):
        return (f"CameraIntrinsics({self.width}x{self.height}, fx={self.fx:.2f}, fy={self.fy:.2f}, "
                f"cx={self.cx:.2f}, cy={self.cy:.2f}, depth_factor={self.depth_factor:g})")


def compute_intrinsics(width, height, focal_x, focal_y=0.0, depth_factor=1000.0):
    """
    Derive intrinsics from device-reported frame size and focal length

    The principal point is placed at the image center (pixel-center
    convention), and fy falls back to fx when the device does not report it.

    Args:
        width: Frame width in pixels
        height: Frame height in pixels
        focal_x: Horizontal focal length in pixels
        focal_y: Vertical focal length in pixels (0 = same as focal_x)
        depth_factor: Raw depth units per meter (1000 for millimeters)

    Returns:
        CameraIntrinsics
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid frame size: {width}x{height}")
    if focal_x <= 0:
        raise ValueError(f"Invalid focal length: {focal_x}")

    fx = float(focal_x)
    fy = float(focal_y)
    if abs(fy - 0.0) <= FLOAT_EPSILON:
        fy = fx

    cx = width / 2.0 - 0.5
    cy = height / 2.0 - 0.5

    return CameraIntrinsics(width, height, fx, fy, cx, cy, depth_factor)


def initialize_parameters(params, width, height, focal_x, focal_y=0.0, depth_factor=1000.0):
    """
    Fill fusion engine parameters (cv2.kinfu.Params) with camera intrinsics

    Args:
        params: Engine parameter object, modified in place
        width, height: Frame size in pixels
        focal_x, focal_y: Focal lengths in pixels (focal_y=0 means same as focal_x)
        depth_factor: Raw depth units per meter

    Returns:
        CameraIntrinsics that were written
    """
    intrinsics = compute_intrinsics(width, height, focal_x, focal_y, depth_factor)

    params.frameSize = intrinsics.frame_size      # Frame Size
    params.intr = intrinsics.camera_matrix        # Camera Intrinsics
    params.depthFactor = intrinsics.depth_factor  # Depth Factor (1000/meter)

    return intrinsics


class Config:
    """Configuration for the KinectFusion viewer"""

    # ========================================================================
    # Capture
    # ========================================================================
    # intelperc | openni2 | realsense
    DEFAULT_BACKEND = 'intelperc'
    DEPTH_FACTOR = 1000.0  # mm
    REALSENSE_WIDTH, REALSENSE_HEIGHT, REALSENSE_FPS = 640, 480, 30

    # ========================================================================
    # Fusion engine
    # ========================================================================
    # default | coarse
    ENGINE_PRESET = 'default'

    # ========================================================================
    # Visualization
    # ========================================================================
    WINDOW_NAME = "Kinect Fusion"
    WINDOW_WIDTH = 1280
    WINDOW_HEIGHT = 720
    POINT_SIZE = 1.5
    BACKGROUND_COLOR = [0.1, 0.1, 0.1]
    CLOUD_COLOR = [1.0, 1.0, 1.0]  # white

    # Keyboard commands
    KEY_RESET = 'r'
    KEY_QUIT = 'q'
    KEY_SAVE = 's'

    # ========================================================================
    # Output
    # ========================================================================
    SNAPSHOT_DIR = 'snapshots'
    STATUS_INTERVAL = 30  # frames between status lines
