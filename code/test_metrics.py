#!/usr/bin/env python3
# test_metrics.py
import os

import pandas as pd
import pytest

from data.loader import ContactEvent, MessageEvent
from main import main
from protocols.settings import RoutingSettings
from simulation.engine import Simulation
from simulation.metrics import (MessageStatsReport, analyze_contact_graph, export_results,
                                predictability_frame)
from simulation.visualize import plot_deliveries, plot_predictability_matrix


@pytest.fixture
def finished():
    contacts = [ContactEvent(0, 'A', 'B', True), ContactEvent(5, 'A', 'B', False),
                ContactEvent(10, 'B', 'C', True)]
    messages = [MessageEvent(0, 'M1', 'A', 'C', 1000)]
    sim = Simulation(RoutingSettings(), contacts, messages, transmit_speed=1000, end_time=20)
    report = sim.add_listener(MessageStatsReport())
    sim.run()
    return sim, report


def test_contact_graph_metrics():
    contacts = [ContactEvent(0, 1, 2, True), ContactEvent(1, 1, 2, False),
                ContactEvent(2, 1, 2, True), ContactEvent(3, 2, 3, True)]
    m = analyze_contact_graph(contacts)

    assert m.Nodes == 3
    assert m.Contacts == 3
    assert m.MeanDegree == pytest.approx(4 / 3)
    assert m.Connexity == 1.0


def test_empty_report():
    report = MessageStatsReport()
    assert report.delivery_ratio() == 0.0
    assert report.overhead_ratio() == float('inf')
    assert report.summary()['latency_avg'] == float('inf')


def test_summary_after_run(finished):
    _, report = finished
    summary = report.summary()

    assert summary['created'] == 1
    assert summary['delivered'] == 1
    assert summary['relayed'] == 2
    assert summary['overhead_ratio'] == pytest.approx(1.0)
    assert summary['hopcount_avg'] == pytest.approx(2.0)


def test_predictability_frame(finished):
    sim, _ = finished
    frame = predictability_frame(sim)

    assert list(frame.index) == ['A', 'B', 'C']
    assert frame.loc['A', 'A'] == 0.0
    assert 0.0 < frame.loc['A', 'B'] <= 1.0
    assert frame.loc['A', 'C'] > 0.0 or frame.loc['B', 'C'] > 0.0


def test_export_and_plots(finished, tmp_path):
    sim, report = finished
    summary_path, deliveries_path = export_results(report, sim.settings, str(tmp_path))

    summary = pd.read_csv(summary_path)
    assert summary.loc[0, 'split_mode'] == 'binary'
    assert summary.loc[0, 'delivered'] == 1
    assert len(pd.read_csv(deliveries_path)) == 1

    assert os.path.exists(plot_predictability_matrix(predictability_frame(sim), str(tmp_path)))
    assert os.path.exists(plot_deliveries(report, sim.end_time, str(tmp_path)))


def test_main_on_sample_trace(tmp_path):
    summary = main(['--outdir', str(tmp_path), '--end-time', '600', '--copies', '4', '--plot'])

    assert summary['created'] > 0
    assert os.path.exists(tmp_path / 'snw_summary.csv')
    assert os.path.exists(tmp_path / 'predictability_matrix.png')
