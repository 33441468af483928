"""Aggregate population points into H3 cells and write a layer file.

Run from the backend directory:

    python -m data.etl.population_layer population.csv cache/layers/vienna.json --streets
"""
import argparse
import json
import math
from pathlib import Path
from typing import Optional

import h3
import pandas as pd

from models import LayerType
from services.overpass import fetch_street_network
from services.streets import StreetNetwork


def aggregate_population(df: pd.DataFrame, resolution: int) -> pd.DataFrame:
    """One row per H3 cell: cell center and summed population, sorted by cell id."""

    df = df.copy()
    df["hex_id"] = [
        h3.latlng_to_cell(float(lat), float(lng), resolution) for lat, lng in zip(df["lat"], df["lng"])
    ]
    grouped = df.groupby("hex_id")["population"].sum().reset_index(name="population_sum")
    grouped["centroid_lat"] = grouped["hex_id"].apply(lambda h: h3.cell_to_latlng(h)[0])
    grouped["centroid_lng"] = grouped["hex_id"].apply(lambda h: h3.cell_to_latlng(h)[1])
    return grouped.sort_values("hex_id").reset_index(drop=True)


def load_population(file_path: Path) -> pd.DataFrame:
    df = pd.read_csv(file_path)
    df = df.rename(columns={c: c.lower() for c in df.columns})
    for col in ["lat", "lng", "population"]:
        if col not in df.columns:
            raise ValueError(f"Column '{col}' is required in the input file")
    df = df.dropna(subset=["lat", "lng", "population"])
    if (df["population"] < 0).any():
        raise ValueError("Population values must not be negative")
    return df


def streets_record(network: StreetNetwork) -> dict:
    ids = {key: index for index, key in enumerate(network.nodes())}
    return {
        "nodes": [{"id": index, "lat": lat, "lng": lng} for (lat, lng), index in ids.items()],
        "edges": [
            {"source": ids[u], "target": ids[v], "length": length}
            for u, v, length in network.edges()
        ],
    }


def build_layer_record(
    cells: pd.DataFrame,
    layer_id: str,
    name: str,
    layer_type: str,
    streets: Optional[StreetNetwork] = None,
) -> dict:
    return {
        "id": layer_id,
        "name": name,
        "type": layer_type,
        "centroids": [
            {"lat": float(row.centroid_lat), "lng": float(row.centroid_lng), "weight": float(row.population_sum)}
            for row in cells.itertuples()
        ],
        "streets": streets_record(streets or StreetNetwork()),
    }


def padded_bbox(cells: pd.DataFrame, pad_m: float) -> tuple:
    pad_lat = pad_m / 111320.0
    mid_lat = (cells["centroid_lat"].min() + cells["centroid_lat"].max()) / 2.0
    pad_lng = pad_m / (111320.0 * math.cos(math.radians(mid_lat)))
    return (
        cells["centroid_lat"].min() - pad_lat,
        cells["centroid_lng"].min() - pad_lng,
        cells["centroid_lat"].max() + pad_lat,
        cells["centroid_lng"].max() + pad_lng,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Build a population layer from point data")
    parser.add_argument("input", type=Path, help="CSV with columns lat,lng,population")
    parser.add_argument("output", type=Path, help="Destination layer file (.json)")
    parser.add_argument("--id", dest="layer_id", help="Layer id (defaults to the output file stem)")
    parser.add_argument("--name", help="Display name of the layer")
    parser.add_argument(
        "--type",
        dest="layer_type",
        default=LayerType.RESIDENTIAL.value,
        choices=[t.value for t in LayerType],
        help="Layer type",
    )
    parser.add_argument("--resolution", type=int, default=10, help="H3 resolution to use")
    parser.add_argument("--streets", action="store_true", help="Fetch the street network from Overpass")
    parser.add_argument("--pad", type=float, default=500.0, help="Street bbox padding in meters")
    args = parser.parse_args()

    cells = aggregate_population(load_population(args.input), args.resolution)
    streets = fetch_street_network(*padded_bbox(cells, args.pad)) if args.streets and len(cells) else None

    layer_id = args.layer_id or args.output.stem
    record = build_layer_record(cells, layer_id, args.name or layer_id, args.layer_type, streets)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(json.dumps(record, ensure_ascii=False), encoding="utf-8")
    print(f"Wrote {len(cells)} population cells to {args.output}")


if __name__ == "__main__":
    main()
