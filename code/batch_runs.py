#!/usr/bin/env python3
# batch_runs.py
"""
Script d'automatisation pour les tests par lots du routeur Spray-and-Wait / PRoPHET
sur une trace de contacts.

Ce script permet de:
1. Exécuter une simulation pour chaque combinaison (nombre de copies, mode de partage)
2. Répéter chaque combinaison avec N graines de génération de messages
3. Calculer des statistiques agrégées (moyenne, écart-type)
4. Générer un fichier CSV de résultats pour analyse ultérieure

Usage:
    python batch_runs.py --copies 2 4 8 --split-modes binary weighted source
                         --runs [N] --output-csv [fichier.csv]
"""

import os
import argparse
import time
import logging
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Dict, List

import numpy as np
import pandas as pd
from tqdm import tqdm

from config import CONFIG, OUTDIR
from data.loader import load_contact_trace, generate_messages, trace_node_ids
from protocols.base import ConfigurationError
from protocols.settings import RoutingSettings, SPLIT_MODES
from simulation.engine import Simulation
from simulation.metrics import MessageStatsReport

logger = logging.getLogger(__name__)

METRICS = ['delivery_prob', 'overhead_ratio', 'latency_avg', 'hopcount_avg', 'relayed', 'dropped']


def parse_arguments():
    """
    Analyse les arguments de ligne de commande.

    Returns:
        argparse.Namespace: Arguments analysés
    """
    parser = argparse.ArgumentParser(
        description="Tests par lots du routeur Spray-and-Wait sur une trace de contacts"
    )
    parser.add_argument('--trace', type=str, default=CONFIG['simulation']['trace_path'],
                        help='Trace de contacts CSV')
    parser.add_argument('--copies', type=int, nargs='+', default=[2, 4, 8, 16],
                        help='Nombres initiaux de copies à tester')
    parser.add_argument('--split-modes', type=str, nargs='+', choices=SPLIT_MODES,
                        default=list(SPLIT_MODES),
                        help='Modes de partage à tester')
    parser.add_argument('--runs', type=int, default=5,
                        help='Nombre de répétitions (graines) par configuration')
    parser.add_argument('--output-csv', type=str, default=os.path.join(OUTDIR, 'batch_results.csv'),
                        help='Chemin du fichier CSV de sortie')
    parser.add_argument('--parallel', type=int, default=os.cpu_count(),
                        help='Nombre de processus en parallèle (défaut: nombre de CPU)')

    args = parser.parse_args()

    if args.runs <= 0:
        parser.error("Le nombre de runs doit être positif")
    if any(c < 1 for c in args.copies):
        parser.error("Le nombre de copies doit être >= 1")

    return args


def run_simulation(trace: str, copies: int, split_mode: str, run_id: int) -> Dict:
    """
    Exécute une simulation pour une configuration donnée.

    Args:
        trace: Chemin de la trace de contacts
        copies: Nombre initial de copies
        split_mode: Mode de partage des copies
        run_id: Identifiant du run (graine de génération des messages)

    Returns:
        Dict: Résumé de la simulation
    """
    sim_cfg = CONFIG['simulation']
    section = dict(CONFIG['routing'], initial_copies=copies, split_mode=split_mode)
    context = {'run_id': run_id, 'copies': copies, 'split_mode': split_mode}

    try:
        settings = RoutingSettings.from_config(section)
    except ConfigurationError as e:
        return {**context, 'error': str(e)}

    contacts = load_contact_trace(trace)
    messages = generate_messages(trace_node_ids(contacts), sim_cfg['message_count'],
                                 sim_cfg['message_interval'], sim_cfg['message_size'],
                                 ttl=sim_cfg['message_ttl'], seed=sim_cfg['seed'] + run_id)
    simulation = Simulation(settings, contacts, messages,
                            buffer_size=sim_cfg['buffer_size'],
                            transmit_speed=sim_cfg['transmit_speed'],
                            update_interval=sim_cfg['update_interval'],
                            end_time=sim_cfg['end_time'])
    report = simulation.add_listener(MessageStatsReport())
    start = time.time()
    simulation.run()

    return {**context, **report.summary(), 'simulation_time': time.time() - start}


def aggregate_results(results: List[Dict]) -> pd.DataFrame:
    """
    Agrège les résultats de plusieurs runs pour calculer les statistiques.

    Args:
        results: Liste des résultats de tous les runs

    Returns:
        pd.DataFrame: une ligne par (copies, split_mode, métrique)
    """
    valid_results = [r for r in results if 'error' not in r]
    if not valid_results:
        logger.error("Aucun résultat valide à agréger")
        return pd.DataFrame()

    df = pd.DataFrame(valid_results).replace([np.inf, -np.inf], np.nan)
    rows = []
    for (copies, split_mode), group in df.groupby(['copies', 'split_mode']):
        for metric in METRICS:
            values = group[metric].dropna()
            if values.empty:
                continue
            rows.append({
                'copies': copies,
                'split_mode': split_mode,
                'runs': len(group),
                'metric': metric,
                'mean': float(np.mean(values)),
                'std': float(np.std(values)) if len(values) > 1 else 0.0,
            })
    return pd.DataFrame(rows)


def save_to_csv(df: pd.DataFrame, output_file: str):
    """
    Sauvegarde les résultats agrégés dans un fichier CSV.

    Args:
        df: DataFrame contenant les résultats agrégés
        output_file: Chemin du fichier CSV de sortie
    """
    os.makedirs(os.path.dirname(os.path.abspath(output_file)), exist_ok=True)
    df.to_csv(output_file, index=False)
    logger.info(f"Résultats sauvegardés dans {output_file}")


def main():
    """
    Fonction principale du script.
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    args = parse_arguments()

    tasks = [(args.trace, copies, mode, run_id)
             for copies in args.copies
             for mode in args.split_modes
             for run_id in range(args.runs)]

    logger.info("=== Configuration des tests par lots ===")
    logger.info(f"Copies: {args.copies}")
    logger.info(f"Modes de partage: {args.split_modes}")
    logger.info(f"Nombre de runs: {args.runs}")
    logger.info(f"Fichier de sortie: {args.output_csv}")
    logger.info(f"Démarrage de {len(tasks)} simulations...")
    start_time = time.time()

    results = []
    with tqdm(total=len(tasks), desc="Progression", unit="sim") as pbar:
        if args.parallel > 1:
            with ProcessPoolExecutor(max_workers=args.parallel) as executor:
                futures = [executor.submit(run_simulation, *task) for task in tasks]
                for future in as_completed(futures):
                    results.append(future.result())
                    pbar.update(1)
        else:
            for task in tasks:
                results.append(run_simulation(*task))
                pbar.update(1)

    execution_time = time.time() - start_time
    errors = [r for r in results if 'error' in r]
    if errors:
        logger.warning(f"{len(errors)} simulations ont échoué sur {len(results)}")
    logger.info(f"Temps d'exécution total: {execution_time:.1f} secondes")

    aggregated_df = aggregate_results(results)
    save_to_csv(aggregated_df, args.output_csv)

    if aggregated_df.empty:
        return

    print("\n" + "=" * 80)
    print("RÉSUMÉ DES RÉSULTATS PAR CONFIGURATION")
    print("=" * 80)
    ratio = aggregated_df[aggregated_df['metric'] == 'delivery_prob']
    print(ratio.pivot(index='copies', columns='split_mode', values='mean').to_string(float_format='%.3f'))
    print("=" * 80)


if __name__ == "__main__":
    main()
