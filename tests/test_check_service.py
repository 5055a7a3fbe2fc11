from datetime import timedelta

import pytest

from huerestore.errors import BridgeApiError, BridgeTransportError
from huerestore.services.check_service import CheckService, CyclePhase

from conftest import OBSERVED_AT


@pytest.fixture
def service(settings, fake_bridge, repo):
    settings = settings.model_copy(update={"magic_number": 2})
    return CheckService(settings, fake_bridge, repo, clock=lambda: OBSERVED_AT)


def _two_lights(make_raw_light, **state):
    return {
        "1": make_raw_light(uniqueid="light-a", name="Left", **state),
        "2": make_raw_light(uniqueid="light-b", name="Right", **state),
    }


def test_first_cycle_records_new_lights(service, fake_bridge, repo, make_raw_light):
    fake_bridge.lights = _two_lights(make_raw_light)

    report = service.run()

    assert report.phase is CyclePhase.DONE
    assert report.new_lights == 2
    assert not report.needs_restore
    assert (repo.count_rows("light"), repo.count_rows("meta"), repo.count_rows("state")) == (2, 2, 2)
    assert fake_bridge.applied == []


def test_power_loss_restores_previous_state(service, fake_bridge, repo, make_raw_light):
    fake_bridge.lights = _two_lights(make_raw_light, ct=300, bri=200)
    service.run()

    fake_bridge.lights = _two_lights(make_raw_light, ct=369, bri=254)
    report = service.run()

    assert report.phase is CyclePhase.DONE
    assert report.needs_restore
    assert report.default_count == 2
    assert fake_bridge.applied == [(1, {"ct": 300, "bri": 200}), (2, {"ct": 300, "bri": 200})]
    assert report.restored == ["light-a", "light-b"]
    # The factory default state is never recorded as the new target
    assert repo.get_all_latest()["light-a"].state.ct == 300
    assert repo.count_rows("state") == 2


def test_below_threshold_records_instead_of_restoring(service, fake_bridge, repo, make_raw_light):
    fake_bridge.lights = _two_lights(make_raw_light, ct=300, bri=200)
    service.run()

    fake_bridge.lights["1"] = make_raw_light(uniqueid="light-a", name="Left", ct=369, bri=254)
    report = service.run()

    assert report.phase is CyclePhase.DONE
    assert report.default_count == 1
    assert not report.needs_restore
    assert fake_bridge.applied == []
    assert report.states_written == 1
    assert report.metadata_written == 0
    assert repo.get_all_latest()["light-a"].state.ct == 369
    assert repo.get_all_latest()["light-b"].state.ct == 300


def test_unchanged_lights_are_not_recorded_again(service, fake_bridge, repo, make_raw_light):
    fake_bridge.lights = _two_lights(make_raw_light)
    service.run()
    service.clock = lambda: OBSERVED_AT + timedelta(minutes=1)

    fake_bridge.lights["2"] = make_raw_light(uniqueid="light-b", name="Right lamp")
    report = service.run()

    assert (report.metadata_written, report.states_written) == (1, 0)
    assert (repo.count_rows("meta"), repo.count_rows("state")) == (3, 2)


def test_new_default_light_counts_towards_detection(settings, fake_bridge, repo, make_raw_light):
    service = CheckService(settings, fake_bridge, repo, clock=lambda: OBSERVED_AT)
    fake_bridge.lights = {"1": make_raw_light(uniqueid="fresh", ct=369, bri=254)}

    report = service.run()

    assert report.needs_restore
    assert report.new_lights == 1
    # Its only known state is the current one, so nothing needs to be sent
    assert fake_bridge.applied == []
    assert (repo.count_rows("light"), repo.count_rows("meta"), repo.count_rows("state")) == (1, 1, 1)


@pytest.mark.parametrize("error", [BridgeTransportError("timed out"), BridgeApiError("unauthorized user", 1, "/")])
def test_fetch_failure_leaves_store_untouched(service, fake_bridge, repo, error):
    fake_bridge.fetch_error = error

    report = service.run()

    assert report.phase is CyclePhase.FETCH_FAILED
    assert not report.ok
    assert report.error == str(error)
    assert repo.count_rows("light") == 0


def test_unexpected_failure_rolls_back_the_cycle(settings, fake_bridge, repo, make_raw_light):
    class BrokenRestorer:
        def restore(self, current, previous):
            raise RuntimeError("boom")

    service = CheckService(settings, fake_bridge, repo, clock=lambda: OBSERVED_AT, restorer=BrokenRestorer())
    fake_bridge.lights = {"1": make_raw_light(ct=369, bri=254)}

    with pytest.raises(RuntimeError):
        service.run()

    assert repo.count_rows("light") == 0
    assert repo.count_rows("state") == 0


def test_malformed_light_does_not_abort_cycle(service, fake_bridge, repo, make_raw_light):
    fake_bridge.lights = {"1": make_raw_light(uniqueid=None), "2": make_raw_light(uniqueid="ok")}

    report = service.run()

    assert report.ok
    assert list(repo.get_all_latest()) == ["ok"]


def test_out_of_range_snapshot_does_not_block_restore(service, fake_bridge, repo, make_raw_light):
    fake_bridge.lights = {
        "1": make_raw_light(uniqueid="light-a", bri=255),
        "2": make_raw_light(uniqueid="light-b", ct=300, bri=200),
    }
    service.run()

    fake_bridge.lights = _two_lights(make_raw_light, ct=369, bri=254)
    report = service.run()

    assert report.ok
    assert fake_bridge.applied == [(2, {"ct": 300, "bri": 200})]
    assert report.restored == ["light-b"]
    assert list(report.failed) == ["light-a"]
