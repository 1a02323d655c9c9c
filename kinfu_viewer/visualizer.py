#!/usr/bin/env python3
"""
Display of the KinFu rendering (OpenCV window) and fused cloud (Open3D window)
"""

import os

import cv2
import numpy as np
import open3d as o3d

from .config import Config


class FusionVisualizer:
    """Rendered view + real-time point cloud viewer"""

    def __init__(self, window_name=Config.WINDOW_NAME, point_size=Config.POINT_SIZE,
                 command_keys=(Config.KEY_RESET, Config.KEY_QUIT, Config.KEY_SAVE)):
        self.window_name = window_name
        self.point_size = point_size
        self.command_keys = tuple(command_keys)

        # Rendered image window
        cv2.namedWindow(window_name)

        # Point cloud window (key callbacks so commands also work when it has focus)
        self.vis = o3d.visualization.VisualizerWithKeyCallback()
        self.vis.create_window(window_name=window_name, width=Config.WINDOW_WIDTH, height=Config.WINDOW_HEIGHT)

        self.pcd = o3d.geometry.PointCloud()
        self.frame_camera = o3d.geometry.TriangleMesh.create_coordinate_frame(size=0.1, origin=[0, 0, 0])
        self.vis.add_geometry(self.frame_camera)
        self.vis.add_geometry(self.pcd)

        self.pending_key = None
        for key in self.command_keys:
            self.vis.register_key_callback(ord(key.upper()), self._make_key_callback(key))

        # Render options
        self.render_option = self.vis.get_render_option()
        self.render_option.point_size = point_size
        self.render_option.background_color = np.array(Config.BACKGROUND_COLOR)

        self.view_initialized = False
        self.closed = False
        self.events_polled = False

        print("✓ Visualizer initialized")

    def _make_key_callback(self, key):
        def callback(vis):
            self.pending_key = key
            return False
        return callback

    def update(self, render=None, cloud=None):
        """
        Update both windows

        Args:
            render: Rendered image from the fusion engine (H, W, 3|4)
            cloud: (N, 6) point cloud [X, Y, Z, R, G, B]
        """
        if render is not None and np.size(render) > 0:
            cv2.imshow(self.window_name, render)

        if cloud is not None and len(cloud) > 0:
            self.pcd.points = o3d.utility.Vector3dVector(cloud[:, :3].astype(np.float64))
            self.pcd.colors = o3d.utility.Vector3dVector(cloud[:, 3:6].astype(np.float64))
        else:
            self.pcd.clear()
        self.vis.update_geometry(self.pcd)

        # Fit the view once the volume has content
        if not self.view_initialized and not self.pcd.is_empty():
            self.vis.reset_view_point(True)
            self.view_initialized = True

        self._poll_window()
        self.events_polled = True
        self.vis.update_renderer()

    def _poll_window(self):
        if not self.vis.poll_events():
            self.closed = True

    def poll_key(self, delay_ms=1):
        """
        Check both windows for a command key

        Returns:
            str: Pressed command key, or None
        """
        key = cv2.waitKey(delay_ms)
        if key != -1:
            char = chr(key & 0xFF).lower()
            if char in self.command_keys:
                return char

        key, self.pending_key = self.pending_key, None
        return key

    def should_close(self):
        """Check if the point cloud window was closed"""
        # Iterations that skip update() still have to pump window events
        if not self.closed and not self.events_polled:
            self._poll_window()
        self.events_polled = False
        return self.closed

    def close(self):
        """Close both windows"""
        self.vis.destroy_window()
        cv2.destroyAllWindows()
        print("✓ Visualizer closed")


def save_point_cloud(point_cloud, filepath, format='auto'):
    """
    Save point cloud to file

    Args:
        point_cloud: (N, 6) array [X, Y, Z, R, G, B]
        filepath: Output file path (.pcd, .ply, .npy)
        format: 'pcd', 'ply', 'npy', or 'auto'

    Returns:
        bool: True if written
    """
    if point_cloud is None or len(point_cloud) == 0:
        print("Warning: Empty point cloud, nothing to save")
        return False

    if format == 'auto':
        format = os.path.splitext(filepath)[1].lstrip('.').lower()

    if format not in ('npy', 'pcd', 'ply'):
        print(f"Unknown format: {format}")
        return False

    try:
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if format == 'npy':
            np.save(filepath, point_cloud)
        else:
            pcd = o3d.geometry.PointCloud()
            pcd.points = o3d.utility.Vector3dVector(point_cloud[:, :3].astype(np.float64))
            pcd.colors = o3d.utility.Vector3dVector(point_cloud[:, 3:6].astype(np.float64))
            if not o3d.io.write_point_cloud(filepath, pcd):
                print(f"✗ Failed to write {filepath}")
                return False

    except Exception as e:
        print(f"Error saving point cloud: {e}")
        return False

    print(f"✓ Saved {len(point_cloud):,} points to {filepath} ({format} format)")
    return True


def load_point_cloud(filepath, format='auto'):
    """
    Load point cloud from file

    Args:
        filepath: Input file path (.pcd, .ply, .npy)
        format: 'pcd', 'ply', 'npy', or 'auto'

    Returns:
        (N, 6) array [X, Y, Z, R, G, B] or None
    """
    if format == 'auto':
        format = os.path.splitext(filepath)[1].lstrip('.').lower()

    if not os.path.exists(filepath):
        print(f"Error: {filepath} not found")
        return None

    if format not in ('npy', 'pcd', 'ply'):
        print(f"Unknown format: {format}")
        return None

    try:
        if format == 'npy':
            point_cloud = np.load(filepath)
            if point_cloud.ndim != 2 or point_cloud.shape[1] < 6:
                raise ValueError(f"expected (N, 6) array, got shape {point_cloud.shape}")
            return point_cloud

        pcd = o3d.io.read_point_cloud(filepath)
        xyz = np.asarray(pcd.points)
        if pcd.has_colors():
            rgb = np.asarray(pcd.colors)
        else:
            rgb = np.tile(np.asarray(Config.CLOUD_COLOR, dtype=np.float64), (len(xyz), 1))
        return np.concatenate([xyz, rgb], axis=-1)

    except Exception as e:
        print(f"Error loading point cloud: {e}")
        return None
