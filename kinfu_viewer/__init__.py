"""
Core modules for the KinectFusion viewer
"""

from .config import Config, CameraIntrinsics, compute_intrinsics, initialize_parameters
from .camera_drivers import OpenCVDepthCamera, RealSenseDepthCamera, create_camera
from .fusion import FusionEngine, FusionUnavailableError, points_to_array
from .visualizer import FusionVisualizer, save_point_cloud, load_point_cloud
from .app import KinectFusionApp, main

__all__ = [
    'Config',
    'CameraIntrinsics',
    'compute_intrinsics',
    'initialize_parameters',
    'OpenCVDepthCamera',
    'RealSenseDepthCamera',
    'create_camera',
    'FusionEngine',
    'FusionUnavailableError',
    'points_to_array',
    'FusionVisualizer',
    'save_point_cloud',
    'load_point_cloud',
    'KinectFusionApp',
    'main',
]
