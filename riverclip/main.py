#!/usr/bin/env python3
"""
RiverClip - OSM water feature clipping service
Web service that clips and merges OpenStreetMap rivers and water areas to a bounding window.
"""

import os
import time
import traceback

from flask import Flask, jsonify, request
from flask_cors import CORS

from riverclip.utils.app_config import (
    get_bounds_buffer_degrees,
    get_cors_origins,
    get_max_input_elements,
    parse_env_bool,
)
from riverclip.utils.bounds import BoundsError, buffered_window, parse_bounds, window_extent_km
from riverclip.utils.element_serializer import features_to_geojson
from riverclip.utils.osm_parser import extract_elements
from riverclip.utils.osm_query import build_land_query, build_water_query
from riverclip.utils.river_processor import ProcessorOptions, process_river_data

app = Flask(__name__)
CORS(app, resources={r"/*": {"origins": get_cors_origins()}})

app.config['MAX_CONTENT_LENGTH'] = 64 * 1024 * 1024  # 64MB max request body


def _request_elements(data):
    """Elements from either `elements` or an embedded Overpass `data` document."""
    if 'elements' in data:
        return extract_elements(data.get('elements'))
    return extract_elements(data.get('data'))


@app.route('/api/bounds', methods=['POST'])
def describe_bounds():
    """Validate a bounding window and return the matching fetch window and queries."""
    try:
        data = request.get_json(silent=True) or {}
        window = parse_bounds(data.get('bounds', data))
        fetch_window = buffered_window(window, get_bounds_buffer_degrees())
        lat_km, lon_km = window_extent_km(window)
        center_lon, center_lat = window.center

        return jsonify({
            'success': True,
            'bounds': window.to_dict(),
            'center': {'lat': center_lat, 'lon': center_lon},
            'extent_km': {'lat': round(lat_km, 4), 'lon': round(lon_km, 4)},
            'fetch_bounds': fetch_window.to_dict(),
            'queries': {
                'water': build_water_query(fetch_window),
                'land': build_land_query(fetch_window),
            },
        })

    except BoundsError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@app.route('/api/process', methods=['POST'])
def process_features():
    """Clip and merge OSM water elements to a bounding window."""
    try:
        t_start = time.time()
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'JSON body required'}), 400

        try:
            window = parse_bounds(data.get('bounds'))
        except BoundsError as e:
            return jsonify({'error': str(e)}), 400

        elements = _request_elements(data)
        max_elements = get_max_input_elements()
        if len(elements) > max_elements:
            return jsonify({
                'error': f'Too many elements ({len(elements)}); limit is {max_elements}'
            }), 413

        try:
            options = ProcessorOptions.from_env().with_overrides(data.get('options') or {})
        except (TypeError, ValueError) as e:
            return jsonify({'error': f'Invalid options: {e}'}), 400

        t_parse = time.time() - t_start

        t_process_start = time.time()
        result = process_river_data(elements, window, options)
        t_process = time.time() - t_process_start
        print(f"[PERF] process_river_data() took {t_process:.3f}s for {len(elements)} elements")

        payload = {
            'success': True,
            'elements': result['elements'],
            'metadata': result['metadata'],
            'timings': {
                'parse_seconds': round(t_parse, 4),
                'process_seconds': round(t_process, 4),
                'total_seconds': round(time.time() - t_start, 4),
            },
        }
        if str(data.get('format', '')).strip().lower() == 'geojson':
            payload['geojson'] = features_to_geojson(result['features'])

        return jsonify(payload)

    except Exception as e:
        print(f"[ERROR] /api/process failed: {str(e)}")
        traceback.print_exc()
        return jsonify({'error': str(e)}), 500


@app.route('/api/health', methods=['GET'])
def health():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'service': 'RiverClip'
    })


if __name__ == '__main__':
    debug_enabled = parse_env_bool(os.getenv('RIVERCLIP_DEBUG'), default=False)
    app.run(host='0.0.0.0', port=5001, debug=debug_enabled)
