import unittest
from dataclasses import replace

from squatcoach.exercise_analysis.base_analyzer import CameraFacing
from squatcoach.exercise_analysis.depth_metric import DepthMetric
from squatcoach.exercise_analysis.heel_rise_metric import HeelRiseMetric
from squatcoach.exercise_analysis.hip_shoulder_sync_metric import HipShoulderSyncMetric
from squatcoach.exercise_analysis.squat_metric_base import RepContext
from squatcoach.exercise_analysis.squat_state_machine import SquatPhase
from squatcoach.exercise_analysis.tempo_metric import TempoMetric
from squatcoach.exercise_analysis.trunk_lean_metric import TrunkLeanMetric
from squatcoach.feedback.result_issues import ResultIssues


def make_ctx(result_issues=None, **overrides) -> RepContext:
    values = dict(
        knee_angle=120.0,
        trunk_lean=20.0,
        clock_angle=None,
        heel_distance=0.0,
        scale_factor=0.25,
        squat_state=SquatPhase.BOTTOM,
        frame_timestamp=0,
        knee_y=0.7,
        hip_y=0.65,
        shoulder_y=0.4,
        result_issues=result_issues if result_issues is not None else ResultIssues(),
        camera_facing=CameraFacing.LEFT,
    )
    values.update(overrides)
    return RepContext(**values)


class TrunkLeanMetricTests(unittest.TestCase):
    def setUp(self) -> None:
        self.metric = TrunkLeanMetric({"forward_lean_max": 40.0, "backward_lean_max": 5.0, "hysteresis_frames": 3})
        self.issues = ResultIssues()

    def test_sustained_lean_logs_one_fault_per_phase(self) -> None:
        ctx = make_ctx(self.issues, trunk_lean=45.0)
        for _ in range(20):
            self.metric.update(ctx)
        self.assertEqual(len(self.metric.faults), 1)
        fault = self.metric.faults[0]
        self.assertEqual((fault.phase, fault.type), ("bottom", "Back"))
        self.assertTrue(fault.affects_form)
        self.assertIn("Back", self.issues.instructions_for(SquatPhase.STANDING))

        # The same condition in a new phase is a new fault.
        for _ in range(3):
            self.metric.update(replace(ctx, squat_state=SquatPhase.ASCENDING))
        self.assertEqual([f.phase for f in self.metric.faults], ["bottom", "ascending"])

    def test_short_spikes_are_filtered_out(self) -> None:
        for lean in [45.0, 45.0, 20.0, 45.0, 45.0, 20.0]:
            self.metric.update(make_ctx(self.issues, trunk_lean=lean))
        self.assertEqual(self.metric.faults, ())
        self.assertEqual(self.issues.feedback["Back"], "Back angle OK")

    def test_backward_lean_after_forward_lean(self) -> None:
        for _ in range(3):
            self.metric.update(make_ctx(self.issues, trunk_lean=45.0))
        for _ in range(3):
            self.metric.update(make_ctx(self.issues, trunk_lean=-10.0))
        self.assertEqual(
            [(f.phase, f.type, f.message) for f in self.metric.faults],
            [("bottom", "Back", "Leaned too far forward"), ("bottom", "BackBackward", "Leaned backward")],
        )
        self.assertEqual(self.issues.feedback["Back"], "Don't lean back")
        # The coaching chip still matches the first recorded lean fault.
        self.assertEqual(
            self.issues.instructions_for(SquatPhase.STANDING)["Back"],
            "Keep your chest up and your torso more upright",
        )

        # Repeating the backward lean in the same phase is not re-logged.
        for _ in range(5):
            self.metric.update(make_ctx(self.issues, trunk_lean=-10.0))
        self.assertEqual(len(self.metric.faults), 2)

    def test_clock_angle_takes_precedence_over_lean(self) -> None:
        ctx = make_ctx(self.issues, trunk_lean=None, clock_angle=315.0, camera_facing=CameraFacing.LEFT)
        self.assertAlmostEqual(TrunkLeanMetric.lean_from_context(ctx), 45.0)
        ctx = make_ctx(self.issues, trunk_lean=None, clock_angle=45.0, camera_facing=CameraFacing.RIGHT)
        self.assertAlmostEqual(TrunkLeanMetric.lean_from_context(ctx), 45.0)

    def test_missing_lean_is_ignored(self) -> None:
        for _ in range(5):
            self.metric.update(make_ctx(self.issues, trunk_lean=None))
        self.assertEqual(self.metric.faults, ())
        self.assertNotIn("Back", self.issues.feedback)

    def test_reset_clears_faults_and_instruction_flags(self) -> None:
        for _ in range(3):
            self.metric.update(make_ctx(self.issues, trunk_lean=45.0))
        self.metric.reset()
        self.assertEqual(self.metric.faults, ())
        self.assertIsNone(self.metric.max_trunk_lean)
        self.assertEqual(self.metric.debug_data, {})

        self.issues.clear_instructions()
        for _ in range(3):
            self.metric.update(make_ctx(self.issues, trunk_lean=45.0))
        self.assertEqual(len(self.metric.faults), 1)
        self.assertIn("Back", self.issues.instructions_for(SquatPhase.STANDING))


class DepthMetricTests(unittest.TestCase):
    def setUp(self) -> None:
        self.metric = DepthMetric({"min_hip_knee_ratio": -0.15})
        self.issues = ResultIssues()

    def test_rep_that_never_reached_bottom_is_shallow(self) -> None:
        self.metric.update(make_ctx(self.issues, squat_state=SquatPhase.DESCENDING))
        self.metric.check_rep_completion(SquatPhase.DESCENDING, make_ctx(self.issues))
        self.assertEqual(len(self.metric.faults), 1)
        self.assertEqual(self.metric.faults[0].phase, "descending")
        self.assertIn("Depth", self.issues.instructions_for(SquatPhase.STANDING))

    def test_hips_above_knees_at_bottom(self) -> None:
        self.metric.on_state_transition(SquatPhase.DESCENDING, SquatPhase.BOTTOM, 0)
        # Hips 0.1 above the knee over a 0.25 torso: ratio -0.4.
        self.metric.update(make_ctx(self.issues, hip_y=0.6, knee_y=0.7))
        self.assertEqual(self.issues.feedback["Depth"], "Sink your hips to knee level")
        self.metric.check_rep_completion(SquatPhase.ASCENDING, make_ctx(self.issues))
        self.assertEqual([(f.phase, f.type) for f in self.metric.faults], [("bottom", "Depth")])

    def test_deep_rep_has_no_fault(self) -> None:
        self.metric.on_state_transition(SquatPhase.DESCENDING, SquatPhase.BOTTOM, 0)
        self.metric.update(make_ctx(self.issues, hip_y=0.7, knee_y=0.7))
        self.metric.check_rep_completion(SquatPhase.ASCENDING, make_ctx(self.issues))
        self.assertEqual(self.metric.faults, ())
        self.assertEqual(self.metric.debug_data["hipKneeRatio"], "0.00")


class HeelRiseMetricTests(unittest.TestCase):
    def test_heel_rise_is_informational(self) -> None:
        metric = HeelRiseMetric({"heel_rise_max": 0.08, "hysteresis_frames": 3})
        issues = ResultIssues()
        for _ in range(5):
            metric.update(make_ctx(issues, heel_distance=0.05))
        self.assertEqual(len(metric.faults), 1)
        self.assertFalse(metric.faults[0].affects_form)
        self.assertEqual(metric.faults[0].type, "Feet")
        self.assertEqual(issues.feedback["Feet"], "Keep your heels down")

    def test_unknown_scale_skips_the_check(self) -> None:
        metric = HeelRiseMetric({"heel_rise_max": 0.08, "hysteresis_frames": 1})
        metric.update(make_ctx(heel_distance=0.05, scale_factor=None))
        self.assertEqual(metric.faults, ())


class TempoMetricTests(unittest.TestCase):
    def _run_rep(self, metric, descent_ms, ascent_ms):
        metric.on_state_transition(SquatPhase.STANDING, SquatPhase.DESCENDING, 1000)
        metric.on_state_transition(SquatPhase.DESCENDING, SquatPhase.BOTTOM, 1000 + descent_ms)
        metric.on_state_transition(SquatPhase.BOTTOM, SquatPhase.ASCENDING, 2000 + descent_ms)
        metric.on_state_transition(SquatPhase.ASCENDING, SquatPhase.STANDING, 2000 + descent_ms + ascent_ms)

    def test_fast_descent_fails_the_rep(self) -> None:
        metric = TempoMetric({"min_descent_ms": 500, "max_ascent_ms": 4000})
        issues = ResultIssues()
        self._run_rep(metric, descent_ms=300, ascent_ms=800)
        metric.evaluate_rep(issues)
        self.assertEqual(metric.descent_ms, 300)
        self.assertEqual([(f.phase, f.affects_form) for f in metric.faults], [("descending", True)])
        self.assertIn("Tempo", issues.instructions_for(SquatPhase.STANDING))

    def test_slow_ascent_is_informational(self) -> None:
        metric = TempoMetric({"min_descent_ms": 500, "max_ascent_ms": 4000})
        self._run_rep(metric, descent_ms=900, ascent_ms=4500)
        metric.evaluate_rep(ResultIssues())
        self.assertEqual([(f.phase, f.affects_form) for f in metric.faults], [("ascending", False)])
        self.assertEqual(metric.debug_data["ascentMs"], "4500")

    def test_live_descent_timer(self) -> None:
        metric = TempoMetric({})
        issues = ResultIssues()
        metric.on_state_transition(SquatPhase.STANDING, SquatPhase.DESCENDING, 1000)
        metric.update(make_ctx(issues, squat_state=SquatPhase.DESCENDING, frame_timestamp=1600))
        self.assertEqual(issues.feedback["Tempo"], "Descent 0.6s")


class HipShoulderSyncMetricTests(unittest.TestCase):
    def test_hips_rising_ahead_of_shoulders(self) -> None:
        metric = HipShoulderSyncMetric({"max_hip_lead": 0.15, "hysteresis_frames": 3})
        issues = ResultIssues()
        # Hips rise 0.05 per frame while the shoulders stay put.
        for step in range(6):
            metric.update(make_ctx(
                issues,
                squat_state=SquatPhase.ASCENDING,
                hip_y=0.7 - 0.05 * step,
                shoulder_y=0.45,
            ))
        self.assertEqual([(f.phase, f.type) for f in metric.faults], [("ascending", "Sync")])
        self.assertEqual(issues.feedback["Sync"], "Lift your chest with your hips")

    def test_only_runs_while_ascending(self) -> None:
        metric = HipShoulderSyncMetric({"max_hip_lead": 0.15, "hysteresis_frames": 1})
        issues = ResultIssues()
        for step in range(4):
            metric.update(make_ctx(issues, squat_state=SquatPhase.BOTTOM, hip_y=0.7 - 0.1 * step))
        self.assertEqual(metric.faults, ())
        self.assertNotIn("Sync", issues.feedback)

    def test_torso_moving_together_is_in_sync(self) -> None:
        metric = HipShoulderSyncMetric({"max_hip_lead": 0.15, "hysteresis_frames": 1})
        issues = ResultIssues()
        for step in range(5):
            metric.update(make_ctx(
                issues,
                squat_state=SquatPhase.ASCENDING,
                hip_y=0.7 - 0.05 * step,
                shoulder_y=0.45 - 0.05 * step,
            ))
        self.assertEqual(metric.faults, ())
        self.assertEqual(issues.feedback["Sync"], "Hips and shoulders rising together")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
