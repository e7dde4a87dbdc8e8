# main.py
import argparse
import logging

from tabulate import tabulate

from config import CONFIG, OUTDIR, ensure_outdir
from data.loader import load_contact_trace, load_message_events, generate_messages, trace_node_ids
from protocols.base import ConfigurationError
from protocols.settings import RoutingSettings, SPLIT_MODES, QUEUE_MODES, BIAS_MODES, PREDICTION_MODES
from simulation.engine import Simulation
from simulation.metrics import MessageStatsReport, analyze_contact_graph, export_results, predictability_frame
from simulation.visualize import plot_predictability_matrix, plot_deliveries


def parse_arguments(argv=None):
    """Parse les arguments de ligne de commande."""
    sim = CONFIG['simulation']
    routing = CONFIG['routing']
    parser = argparse.ArgumentParser(description="Simulation Spray-and-Wait / PRoPHET sur une trace de contacts")
    parser.add_argument('--trace', type=str, default=sim['trace_path'],
                        help='Trace de contacts CSV (time,node_a,node_b,event)')
    parser.add_argument('--messages', type=str, default=sim['messages_path'],
                        help='Messages CSV (time,id,source,destination,size[,ttl]); générés sinon')
    parser.add_argument('--copies', type=int, default=routing['initial_copies'],
                        help='Nombre initial de copies par message')
    parser.add_argument('--split-mode', type=str, choices=SPLIT_MODES, default=routing['split_mode'],
                        help='Partage des copies lors d\'un transfert')
    parser.add_argument('--prediction-mode', type=str, choices=PREDICTION_MODES,
                        default=routing['prediction_mode'],
                        help='Règle de mise à jour directe des probabilités')
    parser.add_argument('--queue-mode', type=str, choices=QUEUE_MODES, default=routing['queue_mode'],
                        help='Ordre de la file d\'attente')
    parser.add_argument('--bias', type=str, choices=BIAS_MODES, default=routing['bias'],
                        help='Biais communautaire de la phase de spray')
    parser.add_argument('--end-time', type=float, default=sim['end_time'],
                        help='Durée simulée en secondes')
    parser.add_argument('--outdir', type=str, default=OUTDIR,
                        help='Dossier de sortie')
    parser.add_argument('--plot', action='store_true',
                        help='Génère les graphiques')
    parser.add_argument('--verbose', action='store_true',
                        help='Journalisation détaillée')
    return parser, parser.parse_args(argv)


def build_settings(args):
    """
    Construit les paramètres de routage à partir de CONFIG et des arguments.

    Args:
        args (argparse.Namespace): arguments analysés

    Returns:
        RoutingSettings: paramètres validés
    """
    section = dict(CONFIG['routing'])
    section.update({
        'initial_copies': args.copies,
        'split_mode': args.split_mode,
        'prediction_mode': args.prediction_mode,
        'queue_mode': args.queue_mode,
        'bias': args.bias,
    })
    return RoutingSettings.from_config(section)


def main(argv=None):
    """Point d'entrée principal du programme."""
    parser, args = parse_arguments(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    try:
        settings = build_settings(args)
    except ConfigurationError as e:
        parser.error(str(e))

    sim_cfg = CONFIG['simulation']
    contacts = load_contact_trace(args.trace)
    if args.messages:
        messages = load_message_events(args.messages)
    else:
        messages = generate_messages(trace_node_ids(contacts), sim_cfg['message_count'],
                                     sim_cfg['message_interval'], sim_cfg['message_size'],
                                     ttl=sim_cfg['message_ttl'], seed=sim_cfg['seed'])

    # Analyse topologique de la trace
    print("### Analyse du graphe de contacts ###")
    m = analyze_contact_graph(contacts)
    print(tabulate([[m.Nodes, m.Contacts, f"{m.MeanDegree:.3f}", f"{m.MeanClusterCoef:.3f}",
                     f"{m.Connexity:.1f}", f"{m.Density:.3f}"]],
                   headers=['Nœuds', 'Contacts', 'Degré moyen', 'Clustering', 'Connexité', 'Densité'],
                   tablefmt='grid'))

    simulation = Simulation(settings, contacts, messages,
                            buffer_size=sim_cfg['buffer_size'],
                            transmit_speed=sim_cfg['transmit_speed'],
                            update_interval=sim_cfg['update_interval'],
                            end_time=args.end_time)
    report = simulation.add_listener(MessageStatsReport())

    print(f"\n### {simulation} ###")
    simulation.run(progress=True)

    summary = report.summary()
    print("\n" + "=" * 50)
    print("RÉSULTATS DE LA SIMULATION")
    print("=" * 50)
    print(tabulate([[k, f"{v:.4f}" if isinstance(v, float) else v] for k, v in summary.items()],
                   headers=["Métrique", "Valeur"], tablefmt="grid"))

    outdir = ensure_outdir(args.outdir)
    print("\n### Export des résultats ###")
    export_results(report, settings, outdir)

    if args.plot:
        frame = predictability_frame(simulation)
        print(f"  - Graphique sauvegardé dans {plot_predictability_matrix(frame, outdir)}")
        print(f"  - Graphique sauvegardé dans {plot_deliveries(report, simulation.end_time, outdir)}")

    print("\n### Simulation terminée ###")
    return summary


if __name__ == "__main__":
    main()
