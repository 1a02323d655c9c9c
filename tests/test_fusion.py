#!/usr/bin/env python3
"""
Unit Tests for the KinFu engine wrapper

cv2.kinfu is replaced by mocks; the real engine needs a nonfree OpenCV build.
"""

import sys
import os
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from kinfu_viewer.config import compute_intrinsics
from kinfu_viewer.fusion import FusionEngine, FusionUnavailableError, create_params, points_to_array


def make_cv2_mock(kinfu_engine):
    """cv2 stand-in exposing kinfu.Params presets and KinFu.create"""
    cv2_mock = MagicMock()
    cv2_mock.kinfu.Params.defaultParams.side_effect = lambda: SimpleNamespace(preset='default')
    cv2_mock.kinfu.Params.coarseParams.side_effect = lambda: SimpleNamespace(preset='coarse')
    cv2_mock.kinfu.KinFu.create.return_value = kinfu_engine
    return cv2_mock


class TestCreateParams(unittest.TestCase):

    def test_presets(self):
        with patch('kinfu_viewer.fusion.cv2', make_cv2_mock(MagicMock())):
            self.assertEqual(create_params('default').preset, 'default')
            self.assertEqual(create_params('coarse').preset, 'coarse')

    def test_unknown_preset(self):
        with self.assertRaises(ValueError):
            create_params('ultra')

    def test_missing_kinfu_module(self):
        cv2_mock = MagicMock()
        cv2_mock.kinfu = None
        with patch('kinfu_viewer.fusion.cv2', cv2_mock):
            with self.assertRaises(FusionUnavailableError):
                create_params('default')


class TestFusionEngine(unittest.TestCase):

    def setUp(self):
        self.kinfu = MagicMock()
        self.cv2_mock = make_cv2_mock(self.kinfu)
        patcher = patch('kinfu_viewer.fusion.cv2', self.cv2_mock)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.intrinsics = compute_intrinsics(640, 480, 525.0)
        self.engine = FusionEngine(self.intrinsics)

    def test_params_carry_intrinsics(self):
        params = self.cv2_mock.kinfu.KinFu.create.call_args[0][0]
        self.assertEqual(params.frameSize, (640, 480))
        self.assertEqual(params.depthFactor, 1000.0)
        np.testing.assert_allclose(params.intr, self.intrinsics.camera_matrix)

    def test_update_counts_integrated_frames(self):
        depth = np.zeros((480, 640), dtype=np.uint16)
        self.kinfu.update.return_value = True
        self.assertTrue(self.engine.update(depth))
        self.assertTrue(self.engine.update(depth))
        self.assertEqual(self.engine.frames_integrated, 2)
        self.kinfu.update.assert_called_with(depth)

    def test_update_reports_tracking_failure(self):
        self.kinfu.update.return_value = False
        self.assertFalse(self.engine.update(np.zeros((480, 640), dtype=np.uint16)))
        self.assertEqual(self.engine.frames_integrated, 0)

    def test_reset(self):
        self.kinfu.update.return_value = True
        self.engine.update(np.zeros((480, 640), dtype=np.uint16))
        self.engine.reset()
        self.kinfu.reset.assert_called_once_with()
        self.assertEqual(self.engine.frames_integrated, 0)
        self.assertEqual(self.engine.reset_count, 1)

    def test_get_points_drops_homogeneous_coordinate(self):
        raw = np.array([[[0.1, 0.2, 0.3, 1.0]],
                        [[0.4, 0.5, 0.6, 1.0]]], dtype=np.float32)
        self.kinfu.getPoints.return_value = raw
        points = self.engine.get_points()
        self.assertEqual(points.shape, (2, 3))
        np.testing.assert_allclose(points, [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]], rtol=1e-6)

    def test_get_points_empty(self):
        self.kinfu.getPoints.return_value = None
        self.assertEqual(self.engine.get_points().shape, (0, 3))

    def test_get_cloud(self):
        points = np.ones((5, 1, 4), dtype=np.float32)
        normals = np.zeros((5, 1, 4), dtype=np.float32)
        self.kinfu.getCloud.return_value = (points, normals)
        p, n = self.engine.get_cloud()
        self.assertEqual(p.shape, (5, 3))
        self.assertEqual(n.shape, (5, 3))

    def test_render(self):
        image = np.zeros((480, 640, 4), dtype=np.uint8)
        self.kinfu.render.return_value = image
        self.assertIs(self.engine.render(), image)


class TestPointsToArray(unittest.TestCase):

    def test_white_cloud(self):
        points = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        cloud = points_to_array(points)
        self.assertEqual(cloud.shape, (2, 6))
        np.testing.assert_allclose(cloud[:, :3], points)
        np.testing.assert_allclose(cloud[:, 3:], 1.0)

    def test_custom_color_and_homogeneous_input(self):
        points = np.array([[[1.0, 2.0, 3.0, 1.0]]], dtype=np.float32)
        cloud = points_to_array(points, color=[1.0, 0.0, 0.0])
        np.testing.assert_allclose(cloud, [[1.0, 2.0, 3.0, 1.0, 0.0, 0.0]])

    def test_empty(self):
        self.assertEqual(points_to_array(None).shape, (0, 6))
        self.assertEqual(points_to_array(np.zeros((0, 3))).shape, (0, 6))


if __name__ == '__main__':
    unittest.main()
