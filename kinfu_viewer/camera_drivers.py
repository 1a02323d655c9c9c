#!/usr/bin/env python3
"""
Depth camera drivers for KinectFusion input
"""

import cv2
import numpy as np

from .config import Config, compute_intrinsics

try:
    import pyrealsense2 as rs
    REALSENSE_AVAILABLE = True
except ImportError:
    print("Warning: pyrealsense2 not found. Install with: pip3 install pyrealsense2")
    REALSENSE_AVAILABLE = False


# VideoCapture API, depth generator property offset, focal length properties, depth map flag
OPENCV_BACKENDS = {
    'intelperc': {
        'api': cv2.CAP_INTELPERC,
        'generator': cv2.CAP_INTELPERC_DEPTH_GENERATOR,
        'focal_x': cv2.CAP_INTELPERC_DEPTH_GENERATOR + cv2.CAP_PROP_INTELPERC_DEPTH_FOCAL_LENGTH_HORZ,
        'focal_y': cv2.CAP_INTELPERC_DEPTH_GENERATOR + cv2.CAP_PROP_INTELPERC_DEPTH_FOCAL_LENGTH_VERT,
        'depth_map': cv2.CAP_INTELPERC_DEPTH_MAP,
    },
    'openni2': {
        'api': cv2.CAP_OPENNI2,
        'generator': cv2.CAP_OPENNI_DEPTH_GENERATOR,
        'focal_x': cv2.CAP_OPENNI_DEPTH_GENERATOR_FOCAL_LENGTH,
        'focal_y': None,  # OpenNI reports a single focal length
        'depth_map': cv2.CAP_OPENNI_DEPTH_MAP,
    },
}


class OpenCVDepthCamera:
    """Depth camera opened through cv2.VideoCapture (Intel PerC / OpenNI2)"""

    def __init__(self, backend='intelperc', depth_factor=Config.DEPTH_FACTOR):
        if backend not in OPENCV_BACKENDS:
            raise ValueError(f"Unknown OpenCV capture backend: {backend}")

        self.backend = backend
        self.props = OPENCV_BACKENDS[backend]
        self.depth_factor = depth_factor
        self.capture = None
        self.intrinsics = None

    def start(self):
        """Open the capture device and read its depth stream parameters"""
        self.capture = cv2.VideoCapture(self.props['api'])
        if not self.capture.isOpened():
            print(f"✗ Failed to open depth camera ({self.backend})")
            return False

        generator = self.props['generator']
        width = int(self.capture.get(generator + cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self.capture.get(generator + cv2.CAP_PROP_FRAME_HEIGHT))
        fx = float(self.capture.get(self.props['focal_x']))
        fy = 0.0
        if self.props['focal_y'] is not None:
            fy = float(self.capture.get(self.props['focal_y']))

        try:
            self.intrinsics = compute_intrinsics(width, height, fx, fy, self.depth_factor)
        except ValueError as e:
            print(f"✗ Depth camera reported invalid parameters: {e}")
            self.capture.release()
            return False

        print(f"✓ Depth camera started ({self.backend}): {width}x{height}, fx={fx:.2f}")
        return True

    def get_depth_frame(self):
        """
        Grab and retrieve one depth map

        Returns:
            np.ndarray: (H, W) uint16 depth image, or None if no frame was available
        """
        if not self.capture.grab():
            return None

        ok, frame = self.capture.retrieve(flag=self.props['depth_map'])
        if not ok or frame is None or frame.size == 0:
            return None
        return frame

    def get_intrinsics(self):
        return self.intrinsics

    def stop(self):
        """Release capture device"""
        if self.capture is not None:
            self.capture.release()
            self.capture = None
            print("✓ Depth camera stopped")


class RealSenseDepthCamera:
    """RealSense depth-only camera interface"""

    def __init__(self, serial=None, width=Config.REALSENSE_WIDTH, height=Config.REALSENSE_HEIGHT,
                 fps=Config.REALSENSE_FPS):
        if not REALSENSE_AVAILABLE:
            raise ImportError("pyrealsense2 not available. Install with: pip3 install pyrealsense2")

        self.pipeline = rs.pipeline()
        self.config = rs.config()
        self.serial = serial
        self.width = width
        self.height = height
        self.fps = fps
        self.intrinsics = None
        self.running = False

    def start(self):
        """Start depth stream"""
        try:
            if self.serial:
                self.config.enable_device(self.serial)

            self.config.enable_stream(rs.stream.depth, self.width, self.height, rs.format.z16, self.fps)
            profile = self.pipeline.start(self.config)
        except RuntimeError as e:
            print(f"✗ Failed to start RealSense: {e}")
            return False
        self.running = True

        # Depth factor: raw units per meter
        depth_scale = profile.get_device().first_depth_sensor().get_depth_scale()

        stream_intrinsics = profile.get_stream(rs.stream.depth).as_video_stream_profile().get_intrinsics()
        self.intrinsics = compute_intrinsics(
            stream_intrinsics.width, stream_intrinsics.height,
            stream_intrinsics.fx, stream_intrinsics.fy,
            depth_factor=1.0 / depth_scale
        )

        print(f"✓ RealSense started: {self.width}x{self.height} @ {self.fps}fps (depth scale {depth_scale})")
        return True

    def get_depth_frame(self, timeout_ms=1000):
        """
        Get one depth image

        Returns:
            np.ndarray: (H, W) uint16 depth image, or None if no frame was available
        """
        ok, frames = self.pipeline.try_wait_for_frames(timeout_ms)
        if not ok:
            return None

        depth_frame = frames.get_depth_frame()
        if not depth_frame:
            return None

        depth_image = np.asanyarray(depth_frame.get_data())
        if depth_image.size == 0:
            return None
        return depth_image

    def get_intrinsics(self):
        return self.intrinsics

    def stop(self):
        """Stop camera"""
        if self.running:
            self.pipeline.stop()
            self.running = False
            print("✓ RealSense stopped")


def create_camera(backend, **kwargs):
    """
    Create a depth camera by backend name

    Args:
        backend: 'intelperc', 'openni2' or 'realsense'
        **kwargs: Passed to the camera constructor

    Returns:
        Camera object with start/get_depth_frame/get_intrinsics/stop
    """
    if backend in OPENCV_BACKENDS:
        return OpenCVDepthCamera(backend, **kwargs)
    if backend == 'realsense':
        return RealSenseDepthCamera(**kwargs)
    raise ValueError(f"Unknown camera backend: {backend}")
