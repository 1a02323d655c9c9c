#!/usr/bin/env python3
"""
KinectFusion real-time viewer

Per frame: depth camera -> KinFu update -> rendered view + fused point cloud.
Keys: r = reset volume, s = save fused cloud, q = quit
"""

import argparse
import datetime
import os

import cv2

from .camera_drivers import OPENCV_BACKENDS, create_camera
from .config import Config
from .fusion import PRESETS, FusionEngine, FusionUnavailableError, points_to_array
from .visualizer import FusionVisualizer, save_point_cloud


class KinectFusionApp:
    """Acquisition / fusion / display loop"""

    def __init__(self, camera, engine, visualizer, snapshot_dir=Config.SNAPSHOT_DIR):
        self.camera = camera
        self.engine = engine
        self.visualizer = visualizer
        self.snapshot_dir = snapshot_dir

        self.cloud = None
        self.frame_count = 0
        self.skipped_frames = 0
        self.snapshot_count = 0

    def step(self):
        """
        Run one loop iteration

        Returns:
            bool: False when the loop should stop (quit key or window closed)
        """
        depth = self.camera.get_depth_frame()
        if depth is None:
            self.skipped_frames += 1
            return not self.visualizer.should_close()

        if not self.engine.update(depth):
            print("reset")
            self.engine.reset()
            return not self.visualizer.should_close()

        render = self.engine.render()
        self.cloud = points_to_array(self.engine.get_points(), Config.CLOUD_COLOR)
        self.visualizer.update(render, self.cloud)

        self.frame_count += 1
        if self.frame_count % Config.STATUS_INTERVAL == 0:
            print(f"Frame {self.frame_count}: {len(self.cloud):,} pts | "
                  f"integrated={self.engine.frames_integrated} resets={self.engine.reset_count}")

        key = self.visualizer.poll_key(1)
        if key == Config.KEY_RESET:
            print("reset")
            self.engine.reset()
        elif key == Config.KEY_QUIT:
            return False
        elif key == Config.KEY_SAVE:
            self.save_snapshot()

        return not self.visualizer.should_close()

    def save_snapshot(self):
        """Write the current fused cloud to the snapshot directory"""
        if self.cloud is None or len(self.cloud) == 0:
            print("Warning: No fused points yet, nothing to save")
            return None

        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        # Counter keeps names unique within the same second
        filepath = os.path.join(self.snapshot_dir, f"fusion_{timestamp}_{self.snapshot_count:03d}.ply")
        if not save_point_cloud(self.cloud, filepath):
            return None
        self.snapshot_count += 1
        return filepath

    def run(self):
        """Loop until quit; always releases the camera and windows"""
        try:
            while self.step():
                pass
        except KeyboardInterrupt:
            print("\n\nStopped by user")
        finally:
            print("\n" + "="*60)
            print("Cleaning up...")
            print("="*60)
            self.camera.stop()
            self.visualizer.close()
            print(f"Done! ({self.frame_count} frames fused, {self.engine.reset_count} resets)")


def build_parser():
    parser = argparse.ArgumentParser(description='KinectFusion Real-time Viewer')
    parser.add_argument('--backend', choices=sorted(OPENCV_BACKENDS) + ['realsense'],
                        default=Config.DEFAULT_BACKEND, help='Depth camera backend (default: %(default)s)')
    parser.add_argument('--serial', type=str, default=None, help='RealSense serial number (default: first device)')
    parser.add_argument('--preset', choices=sorted(PRESETS), default=Config.ENGINE_PRESET,
                        help='KinFu parameter preset (default: %(default)s)')
    parser.add_argument('--point-size', type=float, default=Config.POINT_SIZE, help='Point size in the 3D viewer')
    parser.add_argument('--snapshot-dir', type=str, default=Config.SNAPSHOT_DIR,
                        help='Directory for clouds saved with the s key')
    return parser


def main(argv=None):
    """Main function"""
    args = build_parser().parse_args(argv)

    cv2.setUseOptimized(True)

    print("="*60)
    print("Kinect Fusion")
    print("="*60)
    print(f"Backend: {args.backend} | Preset: {args.preset}")
    print("Keys: r = reset, s = save cloud, q = quit")
    print("="*60)

    camera_kwargs = {'serial': args.serial} if args.backend == 'realsense' else {}
    try:
        camera = create_camera(args.backend, **camera_kwargs)
    except ImportError as e:
        print(f"✗ {e}")
        return 1

    if not camera.start():
        return 1

    try:
        engine = FusionEngine(camera.get_intrinsics(), preset=args.preset)
    except FusionUnavailableError as e:
        print(f"✗ {e}")
        camera.stop()
        return 1

    try:
        visualizer = FusionVisualizer(point_size=args.point_size)
    except cv2.error as e:
        print(f"✗ Failed to open display: {e}")
        camera.stop()
        return 1

    app = KinectFusionApp(camera, engine, visualizer, snapshot_dir=args.snapshot_dir)
    app.run()
    return 0
