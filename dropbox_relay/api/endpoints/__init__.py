"""One async function per Dropbox endpoint used by the relay."""
