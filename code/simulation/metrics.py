# simulation/metrics.py
import os
from dataclasses import dataclass

import networkx as nx
import numpy as np
import pandas as pd


@dataclass
class Metric:
    """Métriques pour l'analyse topologique du graphe de contacts.

    Attributes:
        Nodes: Nombre de nœuds du graphe
        Contacts: Nombre de contacts (ouvertures) de la trace
        MeanDegree: Degré moyen du graphe
        MeanClusterCoef: Coefficient de clustering moyen
        Connexity: 1.0 si le graphe est connexe, 0.0 sinon
        Density: Densité du graphe
    """
    Nodes: int
    Contacts: int
    MeanDegree: float
    MeanClusterCoef: float
    Connexity: float
    Density: float


class MessageStatsReport:
    """
    Collecte les événements de la simulation et calcule les métriques de
    performance du routage (taux de livraison, overhead, latence, sauts).
    """

    def __init__(self):
        self.created = {}          # {id: instant de création}
        self.started = 0
        self.relayed = 0
        self.aborted = 0
        self.dropped = 0
        self.removed_ttl = 0
        self.latencies = {}        # {id: latence de la première livraison}
        self.hop_counts = {}       # {id: nombre de sauts de la première livraison}
        self.delivery_log = []

    #*************** Événements ****************
    def message_created(self, msg, now):
        self.created[msg.id] = now

    def transfer_started(self, msg, from_id, to_id, now):
        self.started += 1

    def message_relayed(self, msg, from_id, to_id, now, first_delivery):
        self.relayed += 1
        if first_delivery:
            self.latencies[msg.id] = now - msg.created_at
            self.hop_counts[msg.id] = msg.hop_count
            self.delivery_log.append({
                'packet_id': msg.id,
                'src': msg.source,
                'dst': msg.destination,
                't_emit': msg.created_at,
                't_recv': now,
                'num_hops': msg.hop_count,
            })

    def transfer_aborted(self, msg, from_id, to_id, now):
        self.aborted += 1

    def message_dropped(self, msg, node_id, now, reason):
        if reason == 'ttl':
            self.removed_ttl += 1
        else:
            self.dropped += 1

    #*************** Métriques ****************
    @property
    def delivered(self) -> int:
        return len(self.latencies)

    def delivery_ratio(self) -> float:
        """
        Calcule le ratio de livraison.

        Returns:
            float: Ratio entre 0.0 et 1.0
        """
        if not self.created:
            return 0.0
        return self.delivered / len(self.created)

    def overhead_ratio(self) -> float:
        """
        Calcule le ratio d'overhead (relais par message livré).

        Returns:
            float: (relais - livraisons) / livraisons, ou inf si aucune livraison
        """
        if self.delivered == 0:
            return float('inf')
        return (self.relayed - self.delivered) / self.delivered

    def latency_stats(self) -> dict:
        values = list(self.latencies.values())
        if not values:
            return {'mean': float('inf'), 'median': float('inf')}
        return {'mean': float(np.mean(values)), 'median': float(np.median(values))}

    def hop_stats(self) -> dict:
        values = list(self.hop_counts.values())
        if not values:
            return {'mean': 0.0, 'max': 0}
        return {'mean': float(np.mean(values)), 'max': int(np.max(values))}

    def summary(self) -> dict:
        """
        Retourne les métriques agrégées de la simulation.

        Returns:
            dict: métriques nommées comme les colonnes du CSV exporté
        """
        latency = self.latency_stats()
        hops = self.hop_stats()
        return {
            'created': len(self.created),
            'started': self.started,
            'relayed': self.relayed,
            'aborted': self.aborted,
            'dropped': self.dropped,
            'removed_ttl': self.removed_ttl,
            'delivered': self.delivered,
            'delivery_prob': self.delivery_ratio(),
            'overhead_ratio': self.overhead_ratio(),
            'latency_avg': latency['mean'],
            'latency_med': latency['median'],
            'hopcount_avg': hops['mean'],
        }


def contacts_to_graph(contacts):
    """Convertit une trace de contacts en graphe NetworkX.

    Le poids d'une arête est le nombre d'ouvertures de contact entre les deux nœuds.

    Args:
        contacts: Liste de ContactEvent

    Returns:
        Un graphe NetworkX
    """
    G = nx.Graph()
    for ev in contacts:
        G.add_node(ev.a)
        G.add_node(ev.b)
        if ev.up and ev.a != ev.b:
            w = G[ev.a][ev.b]['weight'] + 1 if G.has_edge(ev.a, ev.b) else 1
            G.add_edge(ev.a, ev.b, weight=w)
    return G


def analyze_contact_graph(contacts):
    """Calcule les métriques topologiques d'une trace de contacts.

    Args:
        contacts: Liste de ContactEvent

    Returns:
        Metric: Objet contenant les métriques calculées
    """
    G = contacts_to_graph(contacts)
    n = G.number_of_nodes()
    if n == 0:
        return Metric(0, 0, 0.0, 0.0, 0.0, 0.0)

    return Metric(
        n,
        sum(1 for ev in contacts if ev.up),
        sum(d for _, d in G.degree()) / n,
        nx.average_clustering(G),
        1.0 if nx.is_connected(G) else 0.0,
        nx.density(G),
    )


def predictability_frame(simulation, now=None):
    """
    Rassemble les tables de probabilités de tous les nœuds dans un DataFrame.

    Args:
        simulation (Simulation): simulation terminée
        now (float, optional): instant de lecture. Par défaut l'horloge de la simulation.

    Returns:
        DataFrame: lignes = nœud porteur, colonnes = destination
    """
    now = simulation.clock.time if now is None else now
    ids = list(simulation.nodes)
    rows = {nid: simulation.node(nid).router.snapshot_table(now) for nid in ids}
    return pd.DataFrame.from_dict(rows, orient='index').reindex(index=ids, columns=ids).fillna(0.0)


def export_results(report, settings, outdir, prefix='snw'):
    """
    Exporte le résumé et les livraisons d'une simulation en CSV.

    Args:
        report (MessageStatsReport): rapport de la simulation
        settings (RoutingSettings): paramètres utilisés
        outdir (str): dossier de sortie
        prefix (str): préfixe des fichiers

    Returns:
        tuple: chemins (résumé, livraisons)
    """
    os.makedirs(outdir, exist_ok=True)
    summary_path = os.path.join(outdir, f"{prefix}_summary.csv")
    deliveries_path = os.path.join(outdir, f"{prefix}_deliveries.csv")

    row = {**settings.to_dict(), **report.summary()}
    pd.DataFrame([row]).to_csv(summary_path, index=False)
    pd.DataFrame(report.delivery_log,
                 columns=['packet_id', 'src', 'dst', 't_emit', 't_recv', 'num_hops']
                 ).to_csv(deliveries_path, index=False)
    print(f"  - Résumé exporté vers {summary_path}")
    print(f"  - {len(report.delivery_log)} livraisons exportées vers {deliveries_path}")
    return summary_path, deliveries_path
