"""
Watermark Server - HTTP endpoints for embedding and extracting watermarks
"""

from io import BytesIO

from flask import Flask, jsonify, request, send_file
from PIL import Image, UnidentifiedImageError

from .config import WatermarkConfig
from .exceptions import BlindWatermarkError, InvalidParameterError
from .image import ImageProcessor
from .watermark import BlindWatermark

BOOLEAN_FIELDS = ('symmetric', 'multi_point', 'geometric_correction')
TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _read_image(field):
    """Load an uploaded file from the request as an ImageProcessor."""
    upload = request.files.get(field)
    if upload is None:
        raise InvalidParameterError(f"Missing '{field}' file")
    try:
        with Image.open(BytesIO(upload.read())) as image:
            image.load()
            return ImageProcessor.from_image(image)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidParameterError(f"Cannot read '{field}' as an image: {e}")


def _form_overrides(form):
    """Config overrides from form fields; absent fields keep the server defaults."""
    overrides = {}
    try:
        if 'block_size' in form:
            overrides['block_size'] = int(form['block_size'])
        if 'alpha' in form:
            overrides['alpha'] = float(form['alpha'])
        if 'position' in form:
            row, col = form['position'].split(',')
            overrides['position'] = (int(row), int(col))
    except ValueError as e:
        raise InvalidParameterError(f"Invalid form field: {e}")

    for name in BOOLEAN_FIELDS:
        if name in form:
            overrides[name] = form[name].strip().lower() in TRUE_VALUES
    if form.get('key'):
        overrides['key'] = form['key']
    if 'channel' in form:
        overrides['channel'] = form['channel']
    return overrides


def create_app(config=None):
    """
    Create Flask app for watermarking.

    Args:
        config: WatermarkConfig used as the default for every request

    Returns:
        Flask app
    """
    app = Flask(__name__)
    default_config = config if config is not None else WatermarkConfig()

    @app.errorhandler(BlindWatermarkError)
    def handle_error(e):
        return jsonify({'error': str(e), 'code': e.code}), 400

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({'status': 'ok'})

    @app.route('/embed', methods=['POST'])
    def embed():
        """
        Embed text into an uploaded image.

        Form fields: image (file), text, plus optional settings.
        Returns PNG image.
        """
        text = request.form.get('text')
        if text is None:
            return jsonify({'error': "Missing 'text' field"}), 400

        watermark = BlindWatermark(config=default_config.replace(**_form_overrides(request.form)))
        watermark.set_image(_read_image('image')).embed_text(text)

        img_io = BytesIO()
        watermark.image.to_image().save(img_io, 'PNG')
        img_io.seek(0)

        response = send_file(img_io, mimetype='image/png')
        response.headers['X-Watermark-Bits'] = str(watermark.last_embed.bits_embedded)
        response.headers['X-Watermark-Truncated'] = str(watermark.last_embed.truncated).lower()
        return response

    @app.route('/extract', methods=['POST'])
    def extract():
        """
        Extract a watermark from an uploaded image.

        Form fields: image (file), optional reference (file), plus settings.
        Returns JSON {found, text, reason}.
        """
        overrides = _form_overrides(request.form)
        if 'reference' in request.files:
            overrides['geometric_correction'] = True

        watermark = BlindWatermark(config=default_config.replace(**overrides))
        watermark.set_image(_read_image('image'))
        if 'reference' in request.files:
            watermark.set_reference_image(_read_image('reference'))

        result = watermark.extract()
        return jsonify({
            'found': result.found,
            'text': result.text if result.found else None,
            'reason': result.reason,
        })

    return app


def run_server(host='127.0.0.1', port=5000, debug=False, config=None):
    """Run the watermark server."""
    app = create_app(config)
    app.run(host=host, port=port, debug=debug)
