#!/usr/bin/env python3
"""
KinectFusion Real-time Viewer

Purpose: Fuse a live depth stream into a TSDF volume with OpenCV KinFu
- Depth camera: Intel PerC / OpenNI2 (cv2.VideoCapture) or RealSense
- 2D window: KinFu rendering from the tracked camera pose
- 3D window: fused point cloud (Open3D)
- Keys: r = reset volume, s = save fused cloud, q = quit
"""

import sys
import os

# Add package path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from kinfu_viewer.app import main


if __name__ == "__main__":
    sys.exit(main())
