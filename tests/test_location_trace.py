from guided_session.location import LocationTrace, RoutePoint

from conftest import FakeLocationSource


def test_samples_are_flushed_under_the_step_index(location_source):
    trace = LocationTrace(location_source)
    trace.start(3, new_step=True)
    assert trace.status == "requesting"
    location_source.push(40.4, -3.7, 1000)
    location_source.push(40.5, -3.6, 2000)
    assert trace.status == "active"
    assert trace.buffered == 2
    assert trace.routes == {}

    trace.stop()
    assert trace.status == "stopped"
    assert trace.routes == {
        3: [RoutePoint(40.4, -3.7, 1000), RoutePoint(40.5, -3.6, 2000)]
    }
    assert location_source.stops == 1


def test_restarting_appends_to_existing_route(location_source):
    trace = LocationTrace(location_source)
    trace.start(0, new_step=True)
    location_source.push(1.0, 1.0, 1)
    trace.stop()
    trace.start(0)
    location_source.push(2.0, 2.0, 2)
    trace.stop()
    assert [p.timestamp for p in trace.routes[0]] == [1, 2]


def test_sample_from_stopped_stream_is_ignored(location_source):
    trace = LocationTrace(location_source)
    trace.start(0, new_step=True)
    stale_sample, _ = location_source.callbacks[0]
    trace.stop()
    trace.start(1, new_step=True)
    stale_sample(9.0, 9.0, 9)
    assert trace.buffered == 0
    location_source.push(1.0, 1.0, 10)
    trace.stop()
    assert trace.routes == {1: [RoutePoint(1.0, 1.0, 10)]}


def test_stop_without_flush_drops_buffer(location_source):
    trace = LocationTrace(location_source)
    trace.start(0, new_step=True)
    location_source.push(1.0, 1.0, 1)
    trace.stop(flush=False)
    assert trace.routes == {}


def test_error_disables_tracking_for_the_rest_of_the_step(location_source):
    trace = LocationTrace(location_source)
    trace.start(2, new_step=True)
    location_source.push(1.0, 1.0, 1)
    location_source.fail("timeout")
    assert trace.status == "error:timeout"
    assert trace.failed
    assert not trace.active
    # samples gathered before the failure are kept
    assert trace.routes == {2: [RoutePoint(1.0, 1.0, 1)]}

    trace.start(2)
    assert location_source.starts == 1
    assert trace.status == "error:timeout"

    trace.start(2, new_step=True)
    assert location_source.starts == 2
    assert trace.status == "requesting"


def test_unavailable_source_reports_error():
    source = FakeLocationSource(unavailable=True)
    trace = LocationTrace(source)
    trace.start(0, new_step=True)
    assert trace.status == "error:unsupported"
    assert not trace.active
    trace.stop()
    assert source.stops == 0

    no_source = LocationTrace()
    no_source.start(0, new_step=True)
    assert no_source.status == "error:unavailable"


def test_merge_and_clear(location_source):
    trace = LocationTrace(location_source)
    trace.merge({"1": [RoutePoint(1.0, 2.0, 3)], 4: []})
    assert trace.routes == {1: [RoutePoint(1.0, 2.0, 3)]}
    trace.clear()
    assert trace.routes == {}
    assert trace.status is None


def test_route_point_wire_form():
    point = RoutePoint.from_dict({"lat": "40.1", "lng": -3, "timestamp": 5.0})
    assert point == RoutePoint(40.1, -3.0, 5)
    assert point.to_dict() == {"lat": 40.1, "lng": -3.0, "timestamp": 5}
