"""
Command Line Interface for I2D.
"""
import sys
import click
from pydantic import ValidationError
from ..CONFIG.settings import LOG_LEVELS, Settings, load_settings
from ..ENGINE.engine_client import EngineClient, RegistryAuth
from ..MANAGERS.reconstruction_orchestrator import ReconstructionOrchestrator
from ..UTILS.logging_setup import configure_logging
from ..exceptions import I2DError, UpstreamError

@click.command()
@click.option('--image-id', '-i', help='Image id or layer id')
@click.option('--image-name', '-n', help='Image name, e.g. foobar:latest or foobar:1.1.2')
@click.option('--repository', '-r', default=None,
              help='Registry prefix, e.g. asia.gcr.io/google-containers [default: docker.io/library]')
@click.option('--log-level', '-l', type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None,
              help='Log level [default: info]')
@click.option('--username', '-u', default=None, help='Registry username')
@click.option('--password', '-p', default=None, help='Registry password')
@click.option('--layers-tree', '-t', is_flag=True, help='Print the layer tree of all local images')
@click.option('--env-file', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Read settings from this .env file')
def cli(image_id, image_name, repository, log_level, username, password, layers_tree, env_file):
    """
    I2D - Reconstruct a Dockerfile from a Docker image.

    The true base image can only be found for images built locally, whose
    history keeps a tag at every layer a tag was applied to. Images pulled
    from a registry only expose their own tag.
    """
    if not image_name and not image_id:
        raise click.UsageError("either image name or image id should be provided")

    overrides = {
        'repository': repository,
        'log_level': log_level,
        'username': username,
        'password': password,
    }
    try:
        settings = load_settings(env_file)
        settings = Settings(**{**settings.model_dump(), **{k: v for k, v in overrides.items() if v is not None}})
    except ValidationError as e:
        raise click.UsageError(f"invalid settings: {e}")
    logger = configure_logging(settings.log_level)

    try:
        with EngineClient.connect(settings, logger) as engine:
            orchestrator = ReconstructionOrchestrator(
                engine,
                repository=settings.repository,
                auth=RegistryAuth(username=settings.username, password=settings.password),
                logger=logger,
            )
            recipe = orchestrator.run(image_name=image_name, image_id=image_id)
            click.echo(recipe, nl=False)

            if layers_tree:
                try:
                    orchestrator.show_layer_tree()
                except (I2DError, UpstreamError) as e:
                    logger.error(str(e))
    except (I2DError, UpstreamError) as e:
        logger.critical(str(e))
        sys.exit(1)

def main():
    """
    Main entry point for the CLI.
    """
    cli()

if __name__ == '__main__':
    main()
