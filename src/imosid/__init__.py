"""imosid: instant manager of sections in dotfiles.

Tracks named sections inside text files, delimited by marker comments:

    #... aliases begin
    #... aliases hash 0DD9C99DCB5D37FB872A7FC801D8EE38922E477AE4C65F6486B02AE31981C28E
    alias ll='ls -l'
    #... aliases end

Each section carries the hash it had when last compiled, so local edits are
detectable and never overwritten when a canonical source is applied.
"""

__version__ = "0.1.0"
