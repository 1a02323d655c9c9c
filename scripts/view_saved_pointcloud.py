#!/usr/bin/env python3
"""
View a fused point cloud saved with the s key
"""

import sys
import os
import glob
import argparse
import numpy as np
import open3d as o3d

# Add package path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from kinfu_viewer.config import Config
from kinfu_viewer.visualizer import load_point_cloud


def find_snapshot(path):
    """
    Resolve a snapshot file

    Args:
        path: File path, or directory (latest fusion_*.ply/.pcd/.npy is used)

    Returns:
        File path or None
    """
    if os.path.isfile(path):
        return path
    if not os.path.isdir(path):
        return None

    files = []
    for ext in ('ply', 'pcd', 'npy'):
        files.extend(glob.glob(os.path.join(path, f"fusion_*.{ext}")))
    if len(files) == 0:
        return None
    # Timestamped names sort chronologically
    return sorted(files, key=os.path.basename)[-1]


def main():
    parser = argparse.ArgumentParser(description='View saved fused point cloud')
    parser.add_argument('path', nargs='?', default=Config.SNAPSHOT_DIR,
                        help='Point cloud file or snapshot directory (default: latest in %(default)s)')
    args = parser.parse_args()

    filepath = find_snapshot(args.path)
    if filepath is None:
        print(f"Error: No saved point cloud found at {args.path}")
        return 1

    cloud = load_point_cloud(filepath)
    if cloud is None or len(cloud) == 0:
        print(f"Error: {filepath} is empty")
        return 1

    print("="*60)
    print(f"File: {filepath}")
    print(f"Points: {len(cloud):,}")
    print(f"  X: [{cloud[:, 0].min():.3f}, {cloud[:, 0].max():.3f}] m")
    print(f"  Y: [{cloud[:, 1].min():.3f}, {cloud[:, 1].max():.3f}] m")
    print(f"  Z: [{cloud[:, 2].min():.3f}, {cloud[:, 2].max():.3f}] m")
    print("="*60)

    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(cloud[:, :3])
    pcd.colors = o3d.utility.Vector3dVector(cloud[:, 3:6])

    frame = o3d.geometry.TriangleMesh.create_coordinate_frame(size=0.1, origin=[0, 0, 0])

    o3d.visualization.draw_geometries([pcd, frame],
                                      window_name="Kinect Fusion - Saved Cloud",
                                      width=Config.WINDOW_WIDTH, height=Config.WINDOW_HEIGHT)
    return 0


if __name__ == "__main__":
    sys.exit(main())
